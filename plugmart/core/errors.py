"""Errors raised by registry operations."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from plugmart.core.validation import ValidationResult


class RegistryError(Exception):
    """Base error for registry operations."""

    def __init__(self, message: str, plugin_name: str | None = None):
        self.plugin_name = plugin_name
        super().__init__(message)


class PluginNotFoundError(RegistryError):
    """One or more plugins could not be found."""

    def __init__(self, names: str | Iterable[str]):
        self.names = [names] if isinstance(names, str) else list(names)
        super().__init__(
            f"Plugin not found: {', '.join(self.names)}",
            self.names[0] if len(self.names) == 1 else None,
        )


class PluginAlreadyExistsError(RegistryError):
    """A plugin name (or its target directory) is already taken."""

    def __init__(self, name: str, message: str | None = None):
        super().__init__(message or f"Plugin already exists: {name}", name)


class RegistryAlreadyExistsError(RegistryError):
    """A registry document already exists where one was to be created."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Marketplace already exists: {path}")


class ValidationFailedError(RegistryError):
    """Validation reported errors before any change was made."""

    def __init__(
        self,
        message: str,
        result: ValidationResult | None = None,
        plugin_name: str | None = None,
    ):
        self.result = result
        super().__init__(message, plugin_name)


class AtomicRollbackError(RegistryError):
    """Validation failed after a mutation; guarded files were restored."""

    def __init__(self, message: str, result: ValidationResult | None = None):
        self.result = result
        if result is not None and result.errors:
            details = "; ".join(d.message for d in result.errors)
            message = f"{message}: {details}"
        super().__init__(message)


class UnauthorizedError(RegistryError):
    """Refused to delete a directory outside the plugin root or holding the registry."""

    def __init__(self, path: Path, plugin_name: str | None = None, reason: str | None = None):
        self.path = path
        if reason is None:
            reason = (
                "it is outside the plugin root (pass allow_external_delete to override)"
            )
        super().__init__(f"Refusing to delete {path}: {reason}", plugin_name)
