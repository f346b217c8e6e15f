"""Semantic versioning utilities."""

import re
from dataclasses import dataclass
from enum import Enum


@dataclass
class SemVer:
    """Semantic version representation."""

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    _SEMVER_PATTERN = re.compile(
        r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
        r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
        r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
        r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
    )

    @classmethod
    def parse(cls, version_str: str) -> "SemVer":
        """Parse a semver string.

        Args:
            version_str: Version string (e.g., "1.2.3", "2.0.0-beta.1+build.123")

        Returns:
            SemVer instance

        Raises:
            ValueError: If the string is not valid semver
        """
        match = cls._SEMVER_PATTERN.match(version_str)
        if not match:
            raise ValueError(f"Invalid semver: {version_str}")

        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=match.group("prerelease"),
            build=match.group("build"),
        )

    @classmethod
    def is_valid(cls, version_str: str) -> bool:
        """Check whether a string parses as semver."""
        return cls._SEMVER_PATTERN.match(version_str) is not None

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            version += f"-{self.prerelease}"
        if self.build:
            version += f"+{self.build}"
        return version

    def bump_major(self) -> "SemVer":
        """Next major version; minor and patch reset, metadata dropped."""
        return SemVer(self.major + 1, 0, 0)

    def bump_minor(self) -> "SemVer":
        """Next minor version; patch reset, metadata dropped."""
        return SemVer(self.major, self.minor + 1, 0)

    def bump_patch(self) -> "SemVer":
        """Next patch version, metadata dropped."""
        return SemVer(self.major, self.minor, self.patch + 1)


class VersionBump(str, Enum):
    """Kind of version increment requested for a plugin."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    @classmethod
    def parse(cls, value: "str | VersionBump") -> "VersionBump":
        """Parse a bump type string.

        Raises:
            ValueError: If the value is not major, minor or patch
        """
        if isinstance(value, VersionBump):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(
                f"Invalid bump type: {value} (expected major, minor or patch)"
            ) from None


def bump_version(version: str, bump: VersionBump | str) -> str:
    """Increment a semver string.

    Pre-release and build metadata are always dropped.

    Args:
        version: Current version string
        bump: Which component to increment

    Returns:
        The bumped version string

    Raises:
        ValueError: If the version is not valid semver or the bump type is unknown
    """
    current = SemVer.parse(version)
    kind = VersionBump.parse(bump)
    if kind is VersionBump.MAJOR:
        return str(current.bump_major())
    if kind is VersionBump.MINOR:
        return str(current.bump_minor())
    return str(current.bump_patch())


def bump_major(version: str) -> str:
    return bump_version(version, VersionBump.MAJOR)


def bump_minor(version: str) -> str:
    return bump_version(version, VersionBump.MINOR)


def bump_patch(version: str) -> str:
    return bump_version(version, VersionBump.PATCH)


# Exact, caret/tilde, or comparison-prefixed semver, or the wildcard.
_CONSTRAINT_PATTERN = re.compile(
    r"^(\*"
    r"|[\^~]?\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?"
    r"|(?:>=|<=|>|<|=)\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?)$"
)


def is_valid_version_constraint(constraint: str) -> bool:
    """Check if a dependency version constraint is well formed.

    Args:
        constraint: Constraint string (e.g., "^1.2.3", ">=2.0.0", "*")

    Returns:
        True if the constraint matches the supported grammar
    """
    return _CONSTRAINT_PATTERN.match(constraint) is not None
