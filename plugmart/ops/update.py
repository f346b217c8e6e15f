"""Refreshing registered plugins from their manifests.

Updating re-reads each plugin's plugin.json, copies its keywords into the
registry entry's tags, follows a changed manifest name as a rename, and
optionally bumps the plugin's own version. Every file that will be written
is backed up before the first write, so a failure anywhere restores all
of them.
"""

import logging
from collections.abc import Iterable
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from plugmart.config.parser import (
    load_json,
    load_plugin_manifest,
    load_registry_document,
    plugin_manifest_path,
    save_json,
)
from plugmart.core.errors import (
    AtomicRollbackError,
    PluginAlreadyExistsError,
    PluginNotFoundError,
    ValidationFailedError,
)
from plugmart.core.guard import BackupGuard
from plugmart.core.registry import RegistryConfig
from plugmart.core.validation import ValidationResult, validate_plugin
from plugmart.ops.common import write_and_verify
from plugmart.utils.version import SemVer, VersionBump, bump_version

logger = logging.getLogger("plugmart.ops.update")


@dataclass
class UpdateResult:
    """Result of an update operation."""

    updated: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class _Target:
    name: str
    new_name: str
    plugin_path: Path
    tags: list[str]
    raw_manifest: dict[str, Any]
    new_version: str | None = None

    @property
    def manifest_path(self) -> Path:
        return plugin_manifest_path(self.plugin_path)


def update_plugins(
    names: Iterable[str],
    config: RegistryConfig,
    bump: VersionBump | str | None = None,
) -> UpdateResult:
    """Update registry entries from their plugins' manifests.

    Args:
        names: Registered plugin names
        config: Target registry
        bump: Optional version increment (major, minor or patch) applied to
            each plugin's plugin.json

    Returns:
        UpdateResult with the final names of the updated plugins and any
        warnings

    Raises:
        ValueError: If the bump type is unknown
        PluginNotFoundError: If any name is not registered
        PluginAlreadyExistsError: If renames would collide
        ValidationFailedError: If a plugin's version cannot be bumped
        AtomicRollbackError: If validation fails after writing; every
            touched file has been restored
    """
    bump_kind = VersionBump.parse(bump) if bump else None
    names = list(dict.fromkeys(names))
    if not names:
        return UpdateResult()

    document = load_registry_document(config.manifest_path)
    missing = [name for name in names if document.get_plugin(name) is None]
    if missing:
        raise PluginNotFoundError(missing)

    result = UpdateResult()
    targets: list[_Target] = []
    for name in names:
        entry = document.get_plugin(name)
        plugin_path = config.resolve_source(entry.source)
        manifest = load_plugin_manifest(plugin_path)
        raw = load_json(plugin_manifest_path(plugin_path))
        targets.append(
            _Target(
                name=name,
                new_name=manifest.name_str or name,
                plugin_path=plugin_path,
                tags=list(manifest.keywords),
                raw_manifest=raw,
            )
        )

    _check_renames(targets, document.plugin_names)

    if bump_kind is not None:
        for target in targets:
            version = target.raw_manifest.get("version")
            if not isinstance(version, str):
                result.warnings.append(f"Plugin {target.name} has no version; not bumped")
                continue
            if not SemVer.is_valid(version):
                raise ValidationFailedError(
                    f"Invalid semver version in {target.name}: {version}",
                    plugin_name=target.name,
                )
            target.new_version = bump_version(version, bump_kind)

    bumped = [t for t in targets if t.new_version is not None]

    with ExitStack() as stack:
        guards = [stack.enter_context(BackupGuard.acquire(config.manifest_path))]
        guards.extend(
            stack.enter_context(BackupGuard.acquire(t.manifest_path)) for t in bumped
        )

        for target in bumped:
            target.raw_manifest["version"] = target.new_version
            save_json(target.manifest_path, target.raw_manifest)
            logger.info("Bumped %s to %s", target.name, target.new_version)

        document = load_registry_document(config.manifest_path)
        # look every entry up before renaming any, so swapped names resolve
        entries = [(target, document.get_plugin(target.name)) for target in targets]
        for target, entry in entries:
            if entry is None:
                raise PluginNotFoundError(target.name)
            entry.tags = target.tags
            if target.new_name != target.name:
                logger.info("Renaming %s to %s", target.name, target.new_name)
                entry.name = target.new_name

        plugin_results = ValidationResult()
        for target in targets:
            plugin_results.merge(validate_plugin(target.plugin_path))
        if plugin_results.has_errors:
            raise AtomicRollbackError(
                "Plugin validation failed after update; changes rolled back", plugin_results
            )

        write_and_verify(config, document, "update")
        for guard in guards:
            guard.commit()

    result.updated = [t.new_name for t in targets]
    logger.info("Updated %s", ", ".join(result.updated))
    return result


def _check_renames(targets: list[_Target], registered: set[str]) -> None:
    """Reject renames that would produce duplicate entry names."""
    untouched = registered - {t.name for t in targets}
    claimed: dict[str, str] = {}

    for target in targets:
        previous = claimed.get(target.new_name)
        if previous is not None:
            raise PluginAlreadyExistsError(
                target.new_name,
                f"Plugins '{previous}' and '{target.name}' would both be renamed "
                f"to '{target.new_name}'",
            )
        claimed[target.new_name] = target.name

        if target.new_name != target.name and target.new_name in untouched:
            raise PluginAlreadyExistsError(
                target.new_name,
                f"Plugin '{target.name}' would be renamed to '{target.new_name}' "
                "which conflicts with an existing plugin",
            )
