"""Tests for plugmart.ops.remove module."""

import json
import shutil
from pathlib import Path

import pytest

from plugmart.core.errors import AtomicRollbackError, PluginNotFoundError, UnauthorizedError
from plugmart.core.registry import RegistryConfig
from plugmart.ops.add import execute_add, plan_add
from plugmart.ops.remove import remove_plugins


@pytest.fixture
def populated(registry: RegistryConfig, plugin_root: Path, make_plugin) -> RegistryConfig:
    """Registry with internal plugins foo and bar."""
    make_plugin(plugin_root, "foo")
    make_plugin(plugin_root, "bar")
    execute_add(plan_add(["foo", "bar"], registry), registry)
    return registry.reload()


def registered(config: RegistryConfig) -> list[str]:
    data = json.loads(config.manifest_path.read_text())
    return [p["name"] for p in data["plugins"]]


class TestRemovePlugins:
    """Tests for remove_plugins()."""

    def test_removes_entry_keeps_directory(self, populated: RegistryConfig, plugin_root: Path):
        """Without delete only the entry goes."""
        result = remove_plugins(["foo"], populated)

        assert result.removed == ["foo"]
        assert result.warnings == []
        assert registered(populated) == ["bar"]
        assert (plugin_root / "foo").is_dir()

    def test_bumps_version(self, populated: RegistryConfig):
        """Removing bumps the registry patch version."""
        version = populated.document.version

        remove_plugins(["foo"], populated)

        data = json.loads(populated.manifest_path.read_text())
        assert data["version"] != version
        assert data["version"] == "0.1.2"

    def test_delete_removes_directory(self, populated: RegistryConfig, plugin_root: Path):
        """With delete the plugin directory is removed after the entry."""
        remove_plugins(["foo", "bar"], populated, delete=True)

        assert registered(populated) == []
        assert not (plugin_root / "foo").exists()
        assert not (plugin_root / "bar").exists()

    def test_empty_names_is_noop(self, populated: RegistryConfig):
        """No names means no change."""
        before = populated.manifest_path.read_bytes()

        assert remove_plugins([], populated).removed == []
        assert populated.manifest_path.read_bytes() == before

    def test_unknown_name_fails_whole_call(self, populated: RegistryConfig):
        """Any unregistered name aborts before writing."""
        before = populated.manifest_path.read_bytes()

        with pytest.raises(PluginNotFoundError) as exc_info:
            remove_plugins(["foo", "ghost", "phantom"], populated)

        assert exc_info.value.names == ["ghost", "phantom"]
        assert populated.manifest_path.read_bytes() == before

    def test_missing_directory_is_warning(self, populated: RegistryConfig, plugin_root: Path):
        """A directory already gone is reported as a warning."""
        shutil.rmtree(plugin_root / "foo")

        result = remove_plugins(["foo"], populated, delete=True)

        assert result.removed == ["foo"]
        assert len(result.warnings) == 1
        assert "not found" in result.warnings[0]

    def test_failed_validation_rolls_back(
        self, populated: RegistryConfig, plugin_root: Path
    ):
        """A registry that fails validation after writing is restored."""
        shutil.rmtree(plugin_root / "bar")
        before = populated.manifest_path.read_bytes()

        with pytest.raises(AtomicRollbackError):
            remove_plugins(["foo"], populated, delete=True)

        assert populated.manifest_path.read_bytes() == before
        assert (plugin_root / "foo").is_dir()


class TestExternalDelete:
    """Tests for deleting plugins outside the plugin root."""

    @pytest.fixture
    def external(
        self, registry: RegistryConfig, external_dir: Path, make_plugin
    ) -> tuple[RegistryConfig, Path]:
        plugin_dir = make_plugin(external_dir, "ext")
        execute_add(plan_add([str(plugin_dir)], registry, no_copy=True), registry)
        return registry.reload(), plugin_dir

    def test_refused_without_override(self, external: tuple[RegistryConfig, Path]):
        """Deleting outside the plugin root is unauthorized and changes nothing."""
        config, plugin_dir = external
        before = config.manifest_path.read_bytes()

        with pytest.raises(UnauthorizedError) as exc_info:
            remove_plugins(["ext"], config, delete=True)

        assert exc_info.value.path == plugin_dir
        assert plugin_dir.is_dir()
        assert config.manifest_path.read_bytes() == before
        assert list(config.manifest_path.parent.glob("*.bak.*")) == []

    def test_allowed_with_override(self, external: tuple[RegistryConfig, Path]):
        """With the override both the entry and the directory are gone."""
        config, plugin_dir = external

        result = remove_plugins(["ext"], config, delete=True, allow_external_delete=True)

        assert result.removed == ["ext"]
        assert registered(config) == []
        assert not plugin_dir.exists()

    def test_entry_only_needs_no_override(self, external: tuple[RegistryConfig, Path]):
        """Removing just the entry of an external plugin is allowed."""
        config, plugin_dir = external

        remove_plugins(["ext"], config)

        assert registered(config) == []
        assert plugin_dir.is_dir()

    def test_parent_traversal_is_external(
        self, registry: RegistryConfig, project: Path, make_plugin, write_registry
    ):
        """A source escaping the plugin root through .. counts as external."""
        make_plugin(project, "sneaky")
        write_registry(
            {
                "version": "0.1.0",
                "plugins": [{"name": "sneaky", "source": "./plugins/../sneaky"}],
            }
        )

        with pytest.raises(UnauthorizedError):
            remove_plugins(["sneaky"], registry.reload(), delete=True)

        assert (project / "sneaky").is_dir()

    @pytest.mark.parametrize("source", ["", "./", "./.claude-plugin"])
    def test_plugin_root_and_project_never_deleted(
        self,
        registry: RegistryConfig,
        plugin_root: Path,
        make_plugin,
        write_registry,
        source: str,
    ):
        """The override never reaches the plugin root or the marketplace's parents."""
        make_plugin(plugin_root, "keep")
        write_registry(
            {
                "version": "0.1.0",
                "plugins": [
                    {"name": "keep", "source": "keep"},
                    {"name": "bad", "source": source},
                ],
            }
        )
        config = registry.reload()
        before = config.manifest_path.read_bytes()

        with pytest.raises(UnauthorizedError, match="plugin root or contains the marketplace"):
            remove_plugins(["bad"], config, delete=True, allow_external_delete=True)

        assert (plugin_root / "keep").is_dir()
        assert config.manifest_path.read_bytes() == before
        assert list(config.manifest_path.parent.glob("*.bak.*")) == []
