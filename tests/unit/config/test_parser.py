"""Tests for plugmart.config.parser module."""

import json
from pathlib import Path

import pytest

from plugmart.config.parser import (
    ConfigError,
    load_json,
    load_plugin_manifest,
    load_registry_document,
    registry_manifest_path,
    save_json,
    save_registry_document,
)
from plugmart.config.schemas import PluginEntry, RegistryDocument


class TestLoadJson:
    """Tests for load_json function."""

    def test_loads_valid_json(self, temp_dir: Path):
        """Loads valid JSON file."""
        file_path = temp_dir / "test.json"
        file_path.write_text('{"key": "value"}')

        assert load_json(file_path) == {"key": "value"}

    def test_raises_for_missing_file(self, temp_dir: Path):
        """Raises ConfigError for missing file."""
        with pytest.raises(ConfigError, match="File not found"):
            load_json(temp_dir / "nonexistent.json")

    def test_raises_for_invalid_json(self, temp_dir: Path):
        """Raises ConfigError for invalid JSON."""
        file_path = temp_dir / "invalid.json"
        file_path.write_text("not valid json {")

        with pytest.raises(ConfigError, match="Invalid JSON") as exc_info:
            load_json(file_path)
        assert exc_info.value.path == file_path


class TestSaveJson:
    """Tests for save_json function."""

    def test_writes_indented_json_with_newline(self, temp_dir: Path):
        """Output uses 2-space indent and ends with a newline."""
        file_path = temp_dir / "nested" / "out.json"

        save_json(file_path, {"a": [1]})

        text = file_path.read_text()
        assert text == '{\n  "a": [\n    1\n  ]\n}\n'


class TestRegistryDocumentIO:
    """Tests for loading and saving marketplace.json."""

    def test_manifest_path_location(self, temp_dir: Path):
        """The registry lives under .claude-plugin/."""
        assert registry_manifest_path(temp_dir) == temp_dir / ".claude-plugin" / "marketplace.json"

    def test_round_trip(self, temp_dir: Path):
        """A saved document loads back equal."""
        path = registry_manifest_path(temp_dir)
        document = RegistryDocument(
            version="1.0.0",
            plugins=[PluginEntry(name="foo", source="foo", tags=["x"])],
        )

        save_registry_document(path, document)
        loaded = load_registry_document(path)

        assert loaded.version == "1.0.0"
        assert loaded.plugins[0].name == "foo"
        assert loaded.plugins[0].tags == ["x"]

    def test_invalid_document_raises(self, temp_dir: Path):
        """A document without plugins is rejected."""
        path = temp_dir / "marketplace.json"
        path.write_text(json.dumps({"version": "1.0.0"}))

        with pytest.raises(ConfigError, match="Invalid registry document"):
            load_registry_document(path)


class TestLoadPluginManifest:
    """Tests for load_plugin_manifest function."""

    def test_loads_manifest(self, temp_dir: Path, make_plugin):
        """Loads plugin.json from the metadata directory."""
        plugin_dir = make_plugin(temp_dir, "foo", keywords=["a", "b"])

        manifest = load_plugin_manifest(plugin_dir)

        assert manifest.name == "foo"
        assert manifest.keywords == ["a", "b"]

    def test_missing_manifest_raises(self, temp_dir: Path):
        """A directory without plugin.json raises ConfigError."""
        with pytest.raises(ConfigError, match="File not found"):
            load_plugin_manifest(temp_dir)

    def test_bad_keywords_raise(self, temp_dir: Path, make_plugin):
        """Non-list keywords are a parse error."""
        plugin_dir = make_plugin(temp_dir, "foo", keywords="not-a-list")

        with pytest.raises(ConfigError, match="Invalid plugin manifest"):
            load_plugin_manifest(plugin_dir)
