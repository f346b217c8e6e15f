"""Validation of plugin directories and registry documents.

Validators never raise for content problems. They collect every defect they
can find into a :class:`ValidationResult`; a result fails if it holds at
least one error. Warnings never fail a result.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from plugmart.config.parser import extends_manifest_path, plugin_manifest_path
from plugmart.config.schemas import PluginManifest
from plugmart.core.registry import RegistryConfig
from plugmart.utils.filesystem import list_subdirectories
from plugmart.utils.version import SemVer, is_valid_version_constraint

EXTENDS_SECTIONS = (
    "dependencies",
    "optionalDependencies",
    "systemDependencies",
    "optionalSystemDependencies",
)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Diagnostic:
    """A single validation finding."""

    severity: Severity
    message: str
    path: Path | None = None
    field: str | None = None

    @classmethod
    def error(
        cls, message: str, path: Path | None = None, field: str | None = None
    ) -> "Diagnostic":
        return cls(Severity.ERROR, message, path, field)

    @classmethod
    def warning(
        cls, message: str, path: Path | None = None, field: str | None = None
    ) -> "Diagnostic":
        return cls(Severity.WARNING, message, path, field)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


@dataclass
class ValidationResult:
    """Aggregated diagnostics from one or more validation passes."""

    diagnostics: list[Diagnostic] = field(default_factory=list)

    def add(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def merge(self, other: "ValidationResult") -> None:
        self.diagnostics.extend(other.diagnostics)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_error]

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)


# =============================================================================
# Plugin validation
# =============================================================================


def validate_plugin(plugin_path: Path) -> ValidationResult:
    """Validate a plugin directory.

    Checks that:
    - The path is a directory containing ``.claude-plugin/plugin.json``
    - plugin.json parses
    - ``name``, ``version`` and ``description`` are present and non-null
      (each reported separately)
    - A present ``version`` is valid semver
    - The optional extends-plugin.json is well formed

    Args:
        plugin_path: Path to the plugin directory

    Returns:
        ValidationResult with every defect found
    """
    result = ValidationResult()

    if not plugin_path.is_dir():
        result.add(
            Diagnostic.error(
                f"Plugin path does not exist or is not a directory: {plugin_path}",
                path=plugin_path,
            )
        )
        return result

    manifest_path = plugin_manifest_path(plugin_path)
    meta_dir = manifest_path.parent

    if not meta_dir.is_dir():
        result.add(Diagnostic.error(f"Missing {meta_dir.name} directory", path=plugin_path))
        return result

    if not manifest_path.is_file():
        result.add(Diagnostic.error(f"Missing {manifest_path.name}", path=meta_dir))
        return result

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
        manifest = PluginManifest.model_validate(data)
    except (OSError, UnicodeDecodeError) as e:
        result.add(Diagnostic.error(f"Cannot read plugin.json: {e}", path=manifest_path))
        return result
    except json.JSONDecodeError as e:
        result.add(Diagnostic.error(f"Invalid JSON in plugin.json: {e}", path=manifest_path))
        return result
    except ValidationError as e:
        result.add(Diagnostic.error(f"Invalid plugin.json: {e}", path=manifest_path))
        return result

    for field_name, value in (
        ("name", manifest.name_str),
        ("version", manifest.version_str),
        ("description", manifest.description_str),
    ):
        if value is None:
            result.add(
                Diagnostic.error(
                    f"Missing or null required field: {field_name}",
                    path=manifest_path,
                    field=field_name,
                )
            )

    version = manifest.version_str
    if version is not None and not SemVer.is_valid(version):
        result.add(
            Diagnostic.error(
                f"Invalid semver version: {version}", path=manifest_path, field="version"
            )
        )

    result.merge(validate_extends(plugin_path))
    return result


def validate_extends(plugin_path: Path) -> ValidationResult:
    """Validate the optional extends-plugin.json of a plugin.

    The file maps each allowed section to an object of ``name -> constraint``,
    where a constraint is a string or an object whose ``version`` defaults to
    ``"*"``. A missing file is valid.

    Args:
        plugin_path: Path to the plugin directory

    Returns:
        ValidationResult (empty if the file does not exist)
    """
    result = ValidationResult()
    extends_path = extends_manifest_path(plugin_path)

    if not extends_path.is_file():
        return result

    try:
        doc = json.loads(extends_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        result.add(Diagnostic.error(f"Cannot read extends-plugin.json: {e}", path=extends_path))
        return result
    except json.JSONDecodeError as e:
        result.add(
            Diagnostic.error(f"Invalid JSON in extends-plugin.json: {e}", path=extends_path)
        )
        return result

    if not isinstance(doc, dict):
        result.add(
            Diagnostic.error("extends-plugin.json must be a JSON object", path=extends_path)
        )
        return result

    for key in doc:
        if key not in EXTENDS_SECTIONS:
            result.add(
                Diagnostic.error(
                    f"Invalid key in extends-plugin.json: {key}", path=extends_path, field=key
                )
            )

    for section_name in EXTENDS_SECTIONS:
        section = doc.get(section_name)
        if section is None:
            continue
        if not isinstance(section, dict):
            result.add(
                Diagnostic.error(
                    f"Invalid {section_name} in extends-plugin.json: "
                    f"expected object, got {_json_type_name(section)}",
                    path=extends_path,
                    field=section_name,
                )
            )
            continue

        for dep_name, dep_value in section.items():
            constraint = _extract_constraint(dep_value)
            if constraint is None:
                result.add(
                    Diagnostic.error(
                        f"Invalid dependency value in {section_name}: must be string "
                        f"or object with version (for {dep_name})",
                        path=extends_path,
                        field=f"{section_name}.{dep_name}",
                    )
                )
            elif not is_valid_version_constraint(constraint):
                result.add(
                    Diagnostic.error(
                        f"Invalid version constraint in {section_name}: "
                        f"{constraint} (for {dep_name})",
                        path=extends_path,
                        field=f"{section_name}.{dep_name}",
                    )
                )

    return result


def _extract_constraint(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        version = value.get("version")
        return version if isinstance(version, str) else "*"
    return None


def _json_type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if value is None:
        return "null"
    return "object"


# =============================================================================
# Registry validation
# =============================================================================


def validate_registry(
    config: RegistryConfig, skip_plugin_validation: bool = False
) -> ValidationResult:
    """Validate a registry document against the filesystem.

    Checks that:
    - The registry version is valid semver
    - The plugin root directory exists
    - No two entries share a name (one error per duplicate)
    - Every entry has a non-empty name and source
    - Filesystem and registry agree (see :func:`check_completeness`)
    - Unless skipped, every registered plugin passes :func:`validate_plugin`

    Args:
        config: Loaded registry configuration
        skip_plugin_validation: Skip the per-plugin pass

    Returns:
        ValidationResult with every defect found
    """
    result = ValidationResult()
    document = config.document
    manifest_path = config.manifest_path

    if not SemVer.is_valid(document.version):
        result.add(
            Diagnostic.error(
                f"Invalid marketplace version: {document.version}",
                path=manifest_path,
                field="version",
            )
        )

    plugin_root_exists = config.plugin_root.is_dir()
    if not plugin_root_exists:
        result.add(
            Diagnostic.error(
                f"Plugin root directory not found: {config.plugin_root}",
                path=manifest_path,
                field="pluginRoot",
            )
        )

    seen: set[str] = set()
    for entry in document.plugins:
        if entry.name in seen:
            result.add(
                Diagnostic.error(f"Duplicate plugin name: {entry.name}", path=manifest_path)
            )
        seen.add(entry.name)

    for i, entry in enumerate(document.plugins):
        if not entry.name:
            result.add(
                Diagnostic.error(
                    f"Plugin entry {i} has empty name",
                    path=manifest_path,
                    field=f"plugins[{i}].name",
                )
            )
        if not entry.source:
            result.add(
                Diagnostic.error(
                    f"Plugin entry {i} has empty source",
                    path=manifest_path,
                    field=f"plugins[{i}].source",
                )
            )

    if plugin_root_exists:
        result.merge(check_completeness(config))

    if not skip_plugin_validation and plugin_root_exists:
        for entry in document.plugins:
            if not entry.source:
                continue
            plugin_path = config.resolve_source(entry.source)
            if plugin_path.is_dir():
                result.merge(validate_plugin(plugin_path))

    return result


def _source_dir_name(source: str) -> str:
    return Path(source).name or source


def find_orphaned_dirs(config: RegistryConfig) -> list[Path]:
    """Find directories under the plugin root that no entry references.

    An entry references a directory when its source's last path component
    equals the directory name.

    Args:
        config: Loaded registry configuration

    Returns:
        Sorted list of orphaned directory paths
    """
    referenced = {_source_dir_name(entry.source) for entry in config.document.plugins}
    return [
        path for path in list_subdirectories(config.plugin_root) if path.name not in referenced
    ]


def check_completeness(config: RegistryConfig) -> ValidationResult:
    """Check that the plugin root and the registry agree.

    Reports a warning for every directory on disk that no entry references,
    and an error for every entry whose directory is missing. Entries with an
    absolute source are checked at that path; all others by directory name
    under the plugin root.
    """
    result = ValidationResult()

    for orphan in find_orphaned_dirs(config):
        result.add(
            Diagnostic.warning(
                f"Plugin in filesystem but not in marketplace: {orphan.name}", path=orphan
            )
        )

    on_disk = {path.name for path in list_subdirectories(config.plugin_root)}
    for entry in config.document.plugins:
        if not entry.source:
            continue
        if entry.source.startswith("/"):
            present = Path(entry.source).is_dir()
        else:
            present = _source_dir_name(entry.source) in on_disk
        if not present:
            result.add(
                Diagnostic.error(
                    f"Plugin in marketplace but not in filesystem: {entry.source}. "
                    f"Run `plugmart remove {entry.name}` to clean up the stale entry.",
                    path=config.manifest_path,
                )
            )

    return result
