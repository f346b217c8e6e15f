"""Pydantic schemas for marketplace files.

This module defines the data models for:
- .claude-plugin/marketplace.json (registry document)
- <plugin>/.claude-plugin/plugin.json (plugin manifest)
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PLUGIN_ROOT = "./plugins"

# =============================================================================
# Registry Document (marketplace.json)
# =============================================================================


class PluginEntry(BaseModel):
    """One plugin listed in the registry document."""

    model_config = ConfigDict(extra="allow")

    name: str
    source: str
    tags: list[str] = Field(default_factory=list)


class RegistryDocument(BaseModel):
    """Registry document (marketplace.json) schema.

    Entry names are expected to be unique, but this is checked by the
    validator rather than the model: a document may hold duplicates while a
    pipeline is mid-mutation.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: str
    plugin_root: str | None = Field(default=DEFAULT_PLUGIN_ROOT, alias="pluginRoot")
    plugins: list[PluginEntry]

    @property
    def effective_plugin_root(self) -> str:
        """The plugin root as written, falling back to the default."""
        return self.plugin_root or DEFAULT_PLUGIN_ROOT

    @property
    def normalized_plugin_root(self) -> str:
        """The plugin root as a path relative to the project root.

        A bare directory name such as ``plugins`` becomes ``./plugins``.
        """
        root = self.effective_plugin_root
        if root.startswith("./") or root.startswith("/"):
            return root
        return f"./{root}"

    @property
    def plugin_names(self) -> set[str]:
        """Names of all registered plugins."""
        return {entry.name for entry in self.plugins}

    def get_plugin(self, name: str) -> PluginEntry | None:
        """Get the first entry with the given name."""
        for entry in self.plugins:
            if entry.name == name:
                return entry
        return None

    def remove_plugin(self, name: str) -> bool:
        """Remove every entry with the given name.

        Returns:
            True if at least one entry was removed
        """
        before = len(self.plugins)
        self.plugins = [entry for entry in self.plugins if entry.name != name]
        return len(self.plugins) != before

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk JSON shape.

        Uses camelCase keys, omits a null plugin root and empty tag lists.
        """
        data = self.model_dump(by_alias=True, exclude_none=True)
        for entry in data.get("plugins", []):
            if not entry.get("tags"):
                entry.pop("tags", None)
        return data


# =============================================================================
# Plugin Manifest (plugin.json)
# =============================================================================


class PluginManifest(BaseModel):
    """Plugin manifest (plugin.json) schema.

    ``name``, ``version`` and ``description`` accept any JSON value so that a
    parseable but incomplete manifest still loads; missing, null or
    non-string values are reported by the validator instead.
    """

    model_config = ConfigDict(extra="allow")

    name: Any = None
    version: Any = None
    description: Any = None
    keywords: list[str] = Field(default_factory=list)

    @property
    def name_str(self) -> str | None:
        return self.name if isinstance(self.name, str) else None

    @property
    def version_str(self) -> str | None:
        return self.version if isinstance(self.version, str) else None

    @property
    def description_str(self) -> str | None:
        return self.description if isinstance(self.description, str) else None
