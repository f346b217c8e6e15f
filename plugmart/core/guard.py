"""Scoped backup guard for safe file mutations.

A :class:`BackupGuard` copies a file to ``<file>.bak.<epoch-seconds>`` before
it is modified. Committing deletes the backup. Leaving the guard's scope
without committing (an exception, an early return) copies the backup back
over the original and deletes it.

Guards over different files are independent. A pipeline that writes several
files acquires every guard first and only then starts writing, so a failed
backup never leaves a half-mutated set of files::

    with contextlib.ExitStack() as stack:
        guards = [stack.enter_context(BackupGuard.acquire(p)) for p in paths]
        ...  # write
        for guard in guards:
            guard.commit()
"""

import logging
import shutil
import time
from pathlib import Path
from types import TracebackType

logger = logging.getLogger("plugmart.guard")


class BackupGuard:
    """Backs up one file and restores it unless committed."""

    def __init__(self, original_path: Path, backup_path: Path | None = None):
        """Initialize a guard around an existing backup.

        Use :meth:`acquire` to create the backup and the guard together.

        Args:
            original_path: The file being protected
            backup_path: Its backup copy, or None if the file did not exist
        """
        self._original_path = original_path
        self._backup_path = backup_path
        self._committed = False
        self._released = False

    @classmethod
    def acquire(cls, path: Path) -> "BackupGuard":
        """Back up a file and return a guard for it.

        If the file does not exist no backup is made, and both commit and
        release are no-ops.

        Args:
            path: File about to be modified

        Returns:
            A guard owning the backup

        Raises:
            OSError: If the file exists but cannot be copied
        """
        if not path.exists():
            logger.debug("No backup needed for missing file %s", path)
            return cls(path)

        backup_path = path.with_name(f"{path.name}.bak.{int(time.time())}")
        shutil.copy2(path, backup_path)
        logger.debug("Backed up %s to %s", path, backup_path)
        return cls(path, backup_path)

    @property
    def original_path(self) -> Path:
        """The file being protected."""
        return self._original_path

    @property
    def backup_path(self) -> Path | None:
        """The backup copy, or None if the original did not exist."""
        return self._backup_path

    @property
    def committed(self) -> bool:
        return self._committed

    def commit(self) -> None:
        """Keep the mutated file and delete the backup.

        Never raises: if the backup cannot be deleted the failure is logged and
        the backup is left behind, so later guards in a batch still commit.
        """
        self._committed = True
        backup = self._backup_path
        if backup is None or not backup.exists():
            return

        try:
            backup.unlink()
        except OSError as e:
            logger.warning(
                "Committed %s but could not remove backup %s: %s", self._original_path, backup, e
            )
            return
        logger.debug("Committed %s, removed backup", self._original_path)

    def release(self) -> None:
        """Restore the original file unless the guard was committed.

        Runs at most once. Restoration is best effort: if copying the backup
        back fails, the failure is logged and the backup stays on disk for
        manual recovery.
        """
        if self._committed or self._released:
            return
        self._released = True

        backup = self._backup_path
        if backup is None or not backup.exists():
            return

        try:
            shutil.copy2(backup, self._original_path)
        except OSError as e:
            logger.warning(
                "Could not restore %s from %s: %s (backup kept)",
                self._original_path,
                backup,
                e,
            )
            return

        try:
            backup.unlink()
        except OSError as e:
            logger.warning(
                "Restored %s but could not remove backup %s: %s",
                self._original_path,
                backup,
                e,
            )
            return
        logger.debug("Restored %s from backup", self._original_path)

    def __enter__(self) -> "BackupGuard":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __repr__(self) -> str:
        return (
            f"BackupGuard(original_path={self._original_path!r}, "
            f"backup_path={self._backup_path!r}, committed={self._committed!r})"
        )
