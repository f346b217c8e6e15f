"""Shared fixtures for plugmart tests."""

import json
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from plugmart.config.parser import registry_manifest_path
from plugmart.core.registry import RegistryConfig
from plugmart.ops.init import init_registry


def write_plugin(
    parent: Path,
    name: str,
    version: str | None = "1.0.0",
    description: str | None = "A test plugin",
    keywords: list[str] | None = None,
    dir_name: str | None = None,
    **extra: Any,
) -> Path:
    """Create a plugin directory with a plugin.json under ``parent``."""
    plugin_dir = parent / (dir_name or name)
    meta_dir = plugin_dir / ".claude-plugin"
    meta_dir.mkdir(parents=True, exist_ok=True)

    manifest: dict[str, Any] = {"name": name}
    if version is not None:
        manifest["version"] = version
    if description is not None:
        manifest["description"] = description
    if keywords is not None:
        manifest["keywords"] = keywords
    manifest.update(extra)

    (meta_dir / "plugin.json").write_text(json.dumps(manifest, indent=2) + "\n")
    return plugin_dir


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="plugmart_test_")).resolve()
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture(autouse=True)
def isolated_cwd(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test from inside its temporary directory."""
    monkeypatch.chdir(temp_dir)
    return temp_dir


@pytest.fixture
def project(temp_dir: Path) -> Path:
    """Create a project directory with an empty marketplace."""
    project_dir = temp_dir / "project"
    init_registry(project_dir)
    return project_dir


@pytest.fixture
def manifest_path(project: Path) -> Path:
    """Path to the project's marketplace.json."""
    return registry_manifest_path(project)


@pytest.fixture
def registry(manifest_path: Path) -> RegistryConfig:
    """Loaded configuration for the project's marketplace."""
    return RegistryConfig.load(manifest_path)


@pytest.fixture
def plugin_root(registry: RegistryConfig) -> Path:
    """The project's plugin root directory."""
    return registry.plugin_root


@pytest.fixture
def external_dir(temp_dir: Path) -> Path:
    """A directory outside the project for external plugins."""
    path = temp_dir / "external"
    path.mkdir()
    return path


@pytest.fixture
def make_plugin() -> Callable[..., Path]:
    """Factory for plugin directories: make_plugin(parent, name, **fields)."""
    return write_plugin


@pytest.fixture
def write_registry(manifest_path: Path) -> Callable[[dict[str, Any]], None]:
    """Overwrite the project's marketplace.json with raw JSON data."""

    def _write(data: dict[str, Any]) -> None:
        manifest_path.write_text(json.dumps(data, indent=2) + "\n")

    return _write
