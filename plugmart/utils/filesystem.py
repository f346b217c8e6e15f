"""Filesystem utilities for plugin directories."""

import shutil
from pathlib import Path


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def copy_directory(src: Path, dest: Path) -> Path:
    """Copy a directory tree recursively.

    An existing destination is replaced.

    Args:
        src: Source directory path
        dest: Destination directory path

    Returns:
        Path to the copied directory
    """
    if dest.exists():
        shutil.rmtree(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(src, dest)
    return dest


def remove_directory(path: Path) -> bool:
    """Remove a directory and its contents.

    Args:
        path: Directory path to remove

    Returns:
        True if the directory was removed, False if it didn't exist
    """
    if not path.is_dir():
        return False
    shutil.rmtree(path)
    return True


def list_subdirectories(path: Path) -> list[Path]:
    """List the immediate subdirectories of a directory, sorted by name.

    Args:
        path: Directory to scan

    Returns:
        Sorted list of child directory paths (empty if path is not a directory)
    """
    if not path.is_dir():
        return []
    return sorted(p for p in path.iterdir() if p.is_dir())


def is_within(path: Path, root: Path) -> bool:
    """Check whether a path lies strictly inside a root directory.

    Both paths are canonicalized first, so symlinks cannot escape the root.

    Args:
        path: Candidate path
        root: Containing directory

    Returns:
        True if path is a descendant of root (and not root itself)
    """
    resolved = path.resolve()
    resolved_root = root.resolve()
    return resolved != resolved_root and resolved.is_relative_to(resolved_root)
