"""Configuration file parsing utilities."""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from plugmart.config.schemas import PluginManifest, RegistryDocument

PLUGIN_META_DIR = ".claude-plugin"
REGISTRY_FILE = "marketplace.json"
PLUGIN_MANIFEST_FILE = "plugin.json"
EXTENDS_FILE = "extends-plugin.json"


class ConfigError(Exception):
    """Error loading or parsing configuration."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


def load_json(path: Path) -> Any:
    """Load and parse a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed JSON value

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}", path) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e


def save_json(path: Path, data: Any, indent: int = 2) -> None:
    """Save data to a JSON file.

    Args:
        path: Path to write to
        data: Data to serialize
        indent: JSON indentation level
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent)
        f.write("\n")


def registry_manifest_path(root: Path) -> Path:
    """Location of the registry document under a project root."""
    return root / PLUGIN_META_DIR / REGISTRY_FILE


def plugin_manifest_path(plugin_path: Path) -> Path:
    """Location of plugin.json inside a plugin directory."""
    return plugin_path / PLUGIN_META_DIR / PLUGIN_MANIFEST_FILE


def extends_manifest_path(plugin_path: Path) -> Path:
    """Location of the optional extends-plugin.json inside a plugin directory."""
    return plugin_path / PLUGIN_META_DIR / EXTENDS_FILE


def load_registry_document(path: Path) -> RegistryDocument:
    """Load the registry document from marketplace.json.

    Args:
        path: Path to the marketplace.json file

    Returns:
        Parsed RegistryDocument

    Raises:
        ConfigError: If the file is missing or invalid
    """
    data = load_json(path)

    try:
        return RegistryDocument.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid registry document: {e}", path) from e


def save_registry_document(path: Path, document: RegistryDocument) -> None:
    """Save the registry document to marketplace.json.

    Args:
        path: Path to the marketplace.json file
        document: RegistryDocument to save
    """
    save_json(path, document.to_json_dict())


def load_plugin_manifest(plugin_path: Path) -> PluginManifest:
    """Load plugin manifest from .claude-plugin/plugin.json.

    Args:
        plugin_path: Path to the plugin directory

    Returns:
        Parsed PluginManifest

    Raises:
        ConfigError: If the file is missing or invalid
    """
    manifest_path = plugin_manifest_path(plugin_path)
    data = load_json(manifest_path)

    try:
        return PluginManifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid plugin manifest: {e}", manifest_path) from e
