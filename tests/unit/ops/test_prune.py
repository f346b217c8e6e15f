"""Tests for plugmart.ops.prune module."""

import shutil
from pathlib import Path

from plugmart.core.registry import RegistryConfig
from plugmart.ops.add import execute_add, plan_add
from plugmart.ops.prune import prune_plugins


class TestPrunePlugins:
    """Tests for prune_plugins()."""

    def test_nothing_to_prune(self, registry: RegistryConfig):
        """An empty plugin root has no orphans."""
        result = prune_plugins(registry, apply=True)

        assert result.orphaned == []
        assert result.deleted == []

    def test_lists_without_deleting(
        self, registry: RegistryConfig, plugin_root: Path, make_plugin
    ):
        """Without apply, orphans are only reported."""
        make_plugin(plugin_root, "kept")
        execute_add(plan_add(["kept"], registry), registry)
        make_plugin(plugin_root, "stray")
        config = registry.reload()
        before = config.manifest_path.read_bytes()

        result = prune_plugins(config)

        assert result.orphaned == [plugin_root / "stray"]
        assert result.deleted == []
        assert (plugin_root / "stray").is_dir()
        assert config.manifest_path.read_bytes() == before

    def test_apply_deletes_orphans_only(
        self, registry: RegistryConfig, plugin_root: Path, make_plugin
    ):
        """With apply, orphans are deleted and registered plugins stay."""
        make_plugin(plugin_root, "kept")
        execute_add(plan_add(["kept"], registry), registry)
        make_plugin(plugin_root, "stray")
        config = registry.reload()
        before = config.manifest_path.read_bytes()

        result = prune_plugins(config, apply=True)

        assert result.deleted == [plugin_root / "stray"]
        assert not (plugin_root / "stray").exists()
        assert (plugin_root / "kept").is_dir()
        assert config.manifest_path.read_bytes() == before

    def test_failed_delete_is_warning(
        self, registry: RegistryConfig, plugin_root: Path, make_plugin, monkeypatch
    ):
        """A directory that cannot be deleted becomes a warning."""
        make_plugin(plugin_root, "stray")

        def failing_rmtree(*args, **kwargs):
            raise OSError("permission denied")

        monkeypatch.setattr(shutil, "rmtree", failing_rmtree)
        result = prune_plugins(registry, apply=True)

        assert result.deleted == []
        assert len(result.warnings) == 1
        assert "permission denied" in result.warnings[0]
