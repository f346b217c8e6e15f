"""Removing plugins from a registry."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from plugmart.config.parser import load_registry_document
from plugmart.core.errors import PluginNotFoundError, UnauthorizedError
from plugmart.core.guard import BackupGuard
from plugmart.core.registry import RegistryConfig
from plugmart.ops.common import write_and_verify
from plugmart.utils.filesystem import is_within, remove_directory

logger = logging.getLogger("plugmart.ops.remove")


def _is_protected(path: Path, config: RegistryConfig) -> bool:
    """Directories never deleted, even with the external override."""
    protected = {
        config.plugin_root,
        config.manifest_path,
        *config.plugin_root.parents,
        *config.manifest_path.parents,
    }
    return path in protected


@dataclass
class RemoveResult:
    """Result of a remove operation."""

    removed: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def remove_plugins(
    names: Iterable[str],
    config: RegistryConfig,
    delete: bool = False,
    allow_external_delete: bool = False,
) -> RemoveResult:
    """Remove plugins from the registry, optionally deleting their directories.

    All names are checked, and with ``delete`` all directories authorized,
    before the manifest is touched. Directories are deleted only after the
    manifest change is committed; a failed deletion is reported as a warning.

    Args:
        names: Registered plugin names
        config: Target registry
        delete: Also delete each plugin's directory
        allow_external_delete: Permit deleting directories outside the
            plugin root

    Returns:
        RemoveResult with the removed names and any deletion warnings

    Raises:
        PluginNotFoundError: If any name is not registered
        UnauthorizedError: If a directory to delete is outside the plugin
            root and the override is not set, or is the plugin root or an
            ancestor of the marketplace file
        AtomicRollbackError: If the updated registry fails validation
    """
    names = list(dict.fromkeys(names))
    if not names:
        return RemoveResult()

    document = load_registry_document(config.manifest_path)
    missing = [name for name in names if document.get_plugin(name) is None]
    if missing:
        raise PluginNotFoundError(missing)

    to_delete: list[tuple[str, Path]] = []
    if delete:
        for name in names:
            entry = document.get_plugin(name)
            plugin_path = config.resolve_source(entry.source).resolve()
            if _is_protected(plugin_path, config):
                raise UnauthorizedError(
                    plugin_path, name, "it is the plugin root or contains the marketplace"
                )
            if not is_within(plugin_path, config.plugin_root) and not allow_external_delete:
                raise UnauthorizedError(plugin_path, name)
            to_delete.append((name, plugin_path))

    with BackupGuard.acquire(config.manifest_path) as guard:
        document = load_registry_document(config.manifest_path)
        for name in names:
            if not document.remove_plugin(name):
                raise PluginNotFoundError(name)

        write_and_verify(config, document, "remove")
        guard.commit()

    logger.info("Removed %s from %s", ", ".join(names), config.manifest_path)
    result = RemoveResult(removed=names)

    deleted: set[Path] = set()
    for name, plugin_path in to_delete:
        if plugin_path in deleted:
            continue
        try:
            if remove_directory(plugin_path):
                logger.debug("Deleted %s", plugin_path)
            else:
                result.warnings.append(f"Directory for {name} not found: {plugin_path}")
        except OSError as e:
            result.warnings.append(f"Failed to delete {plugin_path}: {e}")
        deleted.add(plugin_path)

    return result
