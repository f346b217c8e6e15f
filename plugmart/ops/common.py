"""Steps shared by the guarded manifest mutations."""

import logging

from plugmart.config.parser import save_registry_document
from plugmart.config.schemas import RegistryDocument
from plugmart.core.errors import AtomicRollbackError, ValidationFailedError
from plugmart.core.registry import RegistryConfig
from plugmart.core.validation import validate_registry
from plugmart.utils.version import bump_patch

logger = logging.getLogger("plugmart.ops")


def bump_document_version(document: RegistryDocument) -> str:
    """Increment the registry document's patch version in place.

    Raises:
        ValidationFailedError: If the current version is not valid semver
    """
    try:
        document.version = bump_patch(document.version)
    except ValueError as e:
        raise ValidationFailedError(f"Invalid marketplace version: {document.version}") from e
    return document.version


def write_and_verify(
    config: RegistryConfig, document: RegistryDocument, action: str
) -> RegistryConfig:
    """Bump, write and re-validate a mutated registry document.

    Must run while a guard over the manifest is held: on failure the caller's
    guard restores the previous bytes.

    Args:
        config: Registry being mutated
        document: Document freshly read and modified by the caller
        action: Name of the operation, used in messages

    Returns:
        A fresh RegistryConfig loaded from the written manifest

    Raises:
        AtomicRollbackError: If the written registry fails validation
    """
    version = bump_document_version(document)
    save_registry_document(config.manifest_path, document)
    logger.info("Wrote %s (version %s)", config.manifest_path, version)

    fresh = config.reload()
    result = validate_registry(fresh, skip_plugin_validation=True)
    if result.has_errors:
        raise AtomicRollbackError(
            f"Marketplace validation failed after {action}; changes rolled back", result
        )
    return fresh
