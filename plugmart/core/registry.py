"""Loaded registry configuration and path resolution."""

from dataclasses import dataclass
from pathlib import Path

from plugmart.config.parser import ConfigError, load_registry_document
from plugmart.config.schemas import RegistryDocument
from plugmart.core.errors import PluginNotFoundError


@dataclass(frozen=True)
class RegistryConfig:
    """A registry as loaded for one command invocation.

    The document is a snapshot taken at load time. Mutating operations
    re-read the manifest from disk instead of trusting it.
    """

    manifest_path: Path
    project_root: Path
    plugin_root: Path
    document: RegistryDocument

    @classmethod
    def load(cls, manifest_path: Path) -> "RegistryConfig":
        """Load a registry from its marketplace.json.

        Args:
            manifest_path: Path to .claude-plugin/marketplace.json

        Returns:
            RegistryConfig with absolute, canonical paths

        Raises:
            ConfigError: If the manifest is missing or invalid, or the plugin
                root directory does not exist
        """
        if not manifest_path.is_file():
            raise ConfigError(f"File not found: {manifest_path}", manifest_path)
        manifest_path = manifest_path.resolve()
        document = load_registry_document(manifest_path)

        # manifest lives in <project>/.claude-plugin/
        project_root = manifest_path.parent.parent

        plugin_root = project_root / document.normalized_plugin_root
        if not plugin_root.is_dir():
            raise ConfigError(f"Plugin root directory not found: {plugin_root}", manifest_path)

        return cls(
            manifest_path=manifest_path,
            project_root=project_root,
            plugin_root=plugin_root.resolve(),
            document=document,
        )

    def reload(self) -> "RegistryConfig":
        """Load a fresh snapshot of the same registry from disk."""
        return RegistryConfig.load(self.manifest_path)

    def resolve_source(self, source: str) -> Path:
        """Resolve an entry's source string to a directory path.

        Absolute sources are used as-is, ``./`` and ``../`` sources are
        relative to the project root, and anything else is a directory name
        under the plugin root.
        """
        if source.startswith("/"):
            return Path(source)
        if source.startswith("./") or source.startswith("../"):
            return self.project_root / source
        return self.plugin_root / source

    def path_to_source(self, plugin_path: Path) -> tuple[str, bool]:
        """Compute the source string for a plugin directory.

        Returns:
            Tuple of (source, is_internal). Internal plugins are referenced by
            their top-level directory name under the plugin root; external
            ones by their absolute path.
        """
        resolved = plugin_path.resolve()
        if resolved.is_relative_to(self.plugin_root) and resolved != self.plugin_root:
            relative = resolved.relative_to(self.plugin_root)
            return relative.parts[0], True
        return str(resolved), False

    def resolve_plugin(self, plugin_input: str) -> Path:
        """Resolve a user-supplied plugin reference to a directory.

        Tries, in order: an existing directory path, a directory of that name
        under the plugin root, and a registered entry with that name.

        Args:
            plugin_input: Path or plugin name

        Returns:
            Canonical path to the plugin directory

        Raises:
            PluginNotFoundError: If nothing matches
        """
        direct = Path(plugin_input)
        if direct.is_dir():
            return direct.resolve()

        under_root = self.plugin_root / plugin_input
        if under_root.is_dir():
            return under_root.resolve()

        entry = self.document.get_plugin(plugin_input)
        if entry is not None:
            resolved = self.resolve_source(entry.source)
            if resolved.is_dir():
                return resolved.resolve()

        raise PluginNotFoundError(plugin_input)
