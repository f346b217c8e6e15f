"""Adding plugins to a registry.

Adding is split in two. :func:`plan_add` resolves and validates the inputs
and decides how to handle name conflicts without touching the filesystem.
:func:`execute_add` copies external plugins under the plugin root and then
updates the manifest under a backup guard, rolling it back if the result
does not validate.

Copies made before the manifest update are not undone by a rollback; the
directories they leave behind show up as orphans and can be pruned.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from plugmart.config.parser import load_plugin_manifest, load_registry_document
from plugmart.config.schemas import PluginEntry
from plugmart.core.conflict import (
    ConflictPolicy,
    ConflictResolution,
    Rename,
    Replace,
    Skip,
    resolve_conflict,
)
from plugmart.core.errors import (
    PluginAlreadyExistsError,
    PluginNotFoundError,
    ValidationFailedError,
)
from plugmart.core.guard import BackupGuard
from plugmart.core.registry import RegistryConfig
from plugmart.core.validation import ValidationResult, validate_plugin
from plugmart.ops.common import write_and_verify
from plugmart.utils.filesystem import copy_directory, remove_directory

logger = logging.getLogger("plugmart.ops.add")


@dataclass
class AddAction:
    """How one input plugin will be added."""

    plugin_path: Path
    plugin_name: str
    source: str
    is_external: bool
    conflict: ConflictResolution | None = None

    @property
    def target_name(self) -> str:
        """Name the entry will be registered under."""
        if isinstance(self.conflict, Rename):
            return self.conflict.new_name
        return self.plugin_name

    @property
    def skipped(self) -> bool:
        return isinstance(self.conflict, Skip)

    @property
    def needs_copy(self) -> bool:
        """Whether the plugin directory is copied under the plugin root."""
        return self.is_external and not self.source.startswith("/")


@dataclass
class AddPlan:
    """The full set of actions for one add call."""

    actions: list[AddAction] = field(default_factory=list)

    @property
    def effective_actions(self) -> list[AddAction]:
        """Actions that will actually be applied (skips removed)."""
        return [a for a in self.actions if not a.skipped]

    @property
    def skipped_names(self) -> list[str]:
        return [a.plugin_name for a in self.actions if a.skipped]


def plan_add(
    inputs: Iterable[str],
    config: RegistryConfig,
    on_conflict: ConflictPolicy | str = ConflictPolicy.ABORT,
    no_copy: bool = False,
) -> AddPlan:
    """Plan adding plugins to the registry.

    Nothing is written. Every input is resolved and validated before any
    error is raised, so one call reports all bad inputs together.

    Args:
        inputs: Plugin paths or names
        config: Target registry
        on_conflict: Policy for names that are already registered
        no_copy: Register external plugins by absolute path instead of
            copying them under the plugin root

    Returns:
        AddPlan with one action per input

    Raises:
        ValueError: If the conflict policy is unknown
        ValidationFailedError: If any input fails plugin validation
        PluginNotFoundError: If any input cannot be resolved
        PluginAlreadyExistsError: On the first conflict under the abort policy
    """
    policy = ConflictPolicy.parse(on_conflict)

    not_found: list[str] = []
    problems: list[str] = []
    failed = ValidationResult()
    resolved: list[tuple[Path, str]] = []

    for plugin_input in inputs:
        try:
            plugin_path = config.resolve_plugin(plugin_input)
        except PluginNotFoundError:
            not_found.append(plugin_input)
            continue

        result = validate_plugin(plugin_path)
        if result.has_errors:
            failed.merge(result)
            problems.extend(f"{plugin_input}: {d.message}" for d in result.errors)
            continue

        manifest = load_plugin_manifest(plugin_path)
        resolved.append((plugin_path, manifest.name_str or plugin_path.name))

    if problems:
        problems.extend(f"{name}: Plugin not found" for name in not_found)
        raise ValidationFailedError(
            "Plugin validation failed:\n  " + "\n  ".join(problems), failed
        )
    if not_found:
        raise PluginNotFoundError(not_found)

    taken = set(config.document.plugin_names)
    plan = AddPlan()

    for plugin_path, name in resolved:
        internal_source, is_internal = config.path_to_source(plugin_path)
        conflict = resolve_conflict(name, taken, policy)

        if is_internal:
            source = internal_source
        elif no_copy:
            source = str(plugin_path)
        else:
            source = conflict.new_name if isinstance(conflict, Rename) else name

        action = AddAction(
            plugin_path=plugin_path,
            plugin_name=name,
            source=source,
            is_external=not is_internal,
            conflict=conflict,
        )
        if not action.skipped:
            taken.add(action.target_name)
        plan.actions.append(action)
        logger.debug(
            "Planned %s from %s (source=%s, external=%s, conflict=%s)",
            action.target_name,
            plugin_path,
            source,
            action.is_external,
            conflict,
        )

    logger.info(
        "Planned %d plugin(s), %d skipped",
        len(plan.effective_actions),
        len(plan.skipped_names),
    )
    return plan


def execute_add(plan: AddPlan, config: RegistryConfig, dry_run: bool = False) -> list[str]:
    """Apply an add plan.

    Args:
        plan: Plan from :func:`plan_add`
        config: Target registry (the manifest is re-read from disk)
        dry_run: Report what would be added without changing anything

    Returns:
        Names registered (or that would be registered), renames applied

    Raises:
        PluginAlreadyExistsError: If a copy target directory is already taken
        AtomicRollbackError: If the updated registry fails validation; the
            manifest has been restored
    """
    actions = plan.effective_actions
    if not actions:
        logger.info("Nothing to add")
        return []

    names = [a.target_name for a in actions]
    if dry_run:
        logger.info("Dry run: would add %s", ", ".join(names))
        return names

    copies = [a for a in actions if a.needs_copy]
    for action in copies:
        target = config.plugin_root / action.source
        if target.exists() and not isinstance(action.conflict, Replace):
            raise PluginAlreadyExistsError(
                action.target_name, f"Target directory already exists: {target}"
            )

    for action in copies:
        target = config.plugin_root / action.source
        if isinstance(action.conflict, Replace) and remove_directory(target):
            logger.debug("Removed %s for replacement", target)
        copy_directory(action.plugin_path, target)
        logger.debug("Copied %s to %s", action.plugin_path, target)

    with BackupGuard.acquire(config.manifest_path) as guard:
        document = load_registry_document(config.manifest_path)

        for action in actions:
            if isinstance(action.conflict, Replace):
                document.remove_plugin(action.plugin_name)

            live_path = config.resolve_source(action.source)
            manifest = load_plugin_manifest(live_path)
            document.plugins.append(
                PluginEntry(
                    name=action.target_name,
                    source=action.source,
                    tags=list(manifest.keywords),
                )
            )

        write_and_verify(config, document, "add")
        guard.commit()

    logger.info("Added %s", ", ".join(names))
    return names
