"""Deleting plugin directories the registry no longer references."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from plugmart.core.registry import RegistryConfig
from plugmart.core.validation import find_orphaned_dirs
from plugmart.utils.filesystem import remove_directory

logger = logging.getLogger("plugmart.ops.prune")


@dataclass
class PruneResult:
    """Result of a prune operation."""

    orphaned: list[Path] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def prune_plugins(config: RegistryConfig, apply: bool = False) -> PruneResult:
    """Find, and optionally delete, orphaned plugin directories.

    The manifest is never modified.

    Args:
        config: Registry to prune
        apply: Delete the orphaned directories; otherwise only list them

    Returns:
        PruneResult
    """
    result = PruneResult(orphaned=find_orphaned_dirs(config))
    if not result.orphaned:
        logger.info("No orphaned plugin directories")
        return result

    if not apply:
        logger.info("Found %d orphaned directory(ies)", len(result.orphaned))
        return result

    for path in result.orphaned:
        try:
            remove_directory(path)
        except OSError as e:
            result.warnings.append(f"Failed to delete {path}: {e}")
            continue
        result.deleted.append(path)
        logger.debug("Deleted %s", path)

    logger.info("Pruned %d directory(ies)", len(result.deleted))
    return result
