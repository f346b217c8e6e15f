"""Creating a new, empty registry."""

import logging
from pathlib import Path

from plugmart.config.parser import registry_manifest_path, save_registry_document
from plugmart.config.schemas import DEFAULT_PLUGIN_ROOT, RegistryDocument
from plugmart.core.errors import RegistryAlreadyExistsError
from plugmart.utils.filesystem import ensure_directory

logger = logging.getLogger("plugmart.ops.init")

INITIAL_VERSION = "0.1.0"


def init_registry(path: Path, plugin_root: str = DEFAULT_PLUGIN_ROOT) -> Path:
    """Scaffold an empty registry under a project directory.

    Creates ``<path>/.claude-plugin/marketplace.json`` and the plugin root
    directory.

    Args:
        path: Project directory (created if missing)
        plugin_root: Plugin root to record, relative to the project directory

    Returns:
        Path to the new marketplace.json

    Raises:
        RegistryAlreadyExistsError: If the project already has a registry
    """
    manifest_path = registry_manifest_path(path)
    if manifest_path.exists():
        raise RegistryAlreadyExistsError(manifest_path)

    root_dir = ensure_directory(path / plugin_root.removeprefix("./"))
    logger.debug("Created plugin root %s", root_dir)

    document = RegistryDocument(version=INITIAL_VERSION, plugin_root=plugin_root, plugins=[])
    save_registry_document(manifest_path, document)
    logger.info("Initialized marketplace at %s", manifest_path)
    return manifest_path
