"""Name conflict resolution for plugins being added to a registry."""

from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum

from plugmart.core.errors import PluginAlreadyExistsError


class ConflictPolicy(str, Enum):
    """What to do when an added plugin's name is already registered."""

    ABORT = "abort"
    SKIP = "skip"
    REPLACE = "replace"
    RENAME = "rename"

    @classmethod
    def parse(cls, value: "str | ConflictPolicy") -> "ConflictPolicy":
        """Parse a policy string.

        Raises:
            ValueError: If the value is not a known policy
        """
        if isinstance(value, ConflictPolicy):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(
                f"Invalid conflict policy: {value} (expected one of {valid})"
            ) from None


@dataclass(frozen=True)
class Skip:
    """Leave the existing entry alone and drop the new one."""


@dataclass(frozen=True)
class Replace:
    """Remove the existing entry and register the new one in its place."""


@dataclass(frozen=True)
class Rename:
    """Register the new plugin under a generated name."""

    new_name: str


ConflictResolution = Skip | Replace | Rename


def generate_unique_name(name: str, existing: Collection[str]) -> str:
    """Find the first ``<name>-N`` (N >= 2) not in ``existing``.

    Gaps are filled: with ``foo`` and ``foo-3`` taken, ``foo-2`` is returned.
    """
    suffix = 2
    while True:
        candidate = f"{name}-{suffix}"
        if candidate not in existing:
            return candidate
        suffix += 1


def resolve_conflict(
    name: str,
    existing: Collection[str],
    policy: ConflictPolicy | str,
) -> ConflictResolution | None:
    """Decide what to do with a plugin name given the names already taken.

    Args:
        name: Name of the plugin being added
        existing: Names already registered
        policy: Conflict policy (parsed if given as a string)

    Returns:
        None if there is no conflict, otherwise the resolution to apply

    Raises:
        PluginAlreadyExistsError: If the name is taken and the policy is abort
        ValueError: If the policy string is unknown
    """
    policy = ConflictPolicy.parse(policy)
    if name not in existing:
        return None

    if policy is ConflictPolicy.ABORT:
        raise PluginAlreadyExistsError(name)
    if policy is ConflictPolicy.SKIP:
        return Skip()
    if policy is ConflictPolicy.REPLACE:
        return Replace()
    return Rename(generate_unique_name(name, existing))
