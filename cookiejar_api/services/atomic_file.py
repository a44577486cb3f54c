"""Crash-safe file replacement using a temp file and an atomic rename.

A pending write lives in a temporary file next to its target, so the final
``os.replace`` never crosses a filesystem boundary. Readers of the target
see either the old contents or the new ones, never a partial file.

Before renaming, ``commit`` compares the target's modification time with the
moment the pending write was opened. A newer target means another writer
got there first and :class:`RetryConflict` is raised instead of clobbering
its contents.

This check is an optimistic lock and not a guarantee. It misses two commits
that land inside one timestamp-resolution window of the filesystem, and
writers that replace the target without bumping its mtime. Nothing locks
the file between the stat and the rename either.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional

from .errors import FilesystemError, RetryConflict

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class AtomicFile:
    """One attempt at replacing ``target``. Consumed by ``commit`` or ``cancel``."""

    def __init__(self, target: Path, fd: int, temp_path: Path, created_ns: int) -> None:
        self.target = target
        self.temp_path = temp_path
        self.created_ns = created_ns
        self._file = os.fdopen(fd, "wb")

    @classmethod
    def create(cls, target: str | os.PathLike[str], clock: Clock = time.time_ns) -> "AtomicFile":
        target = Path(target)
        directory = target.parent
        try:
            fd, temp_name = tempfile.mkstemp(dir=directory, prefix=f"{target.name}.", suffix=".tmp")
        except OSError as exc:
            raise FilesystemError(
                f"cannot create temporary file in {directory}: {exc}", path=str(target)
            ) from exc
        handle = cls(target, fd, Path(temp_name), clock())
        logger.debug("opened pending write %s for %s", handle.temp_path, target)
        return handle

    @property
    def closed(self) -> bool:
        return self._file is None

    def write(self, data: bytes) -> int:
        if self._file is None:
            raise FilesystemError("pending write is already resolved", path=str(self.target))
        try:
            return self._file.write(data)
        except OSError as exc:
            raise FilesystemError(f"write to {self.temp_path} failed: {exc}", path=str(self.target)) from exc

    def cancel(self) -> None:
        """Close and delete the temporary file. Safe to call more than once."""
        if self._file is None:
            return
        handle, self._file = self._file, None
        try:
            handle.close()
        except OSError:
            logger.debug("closing %s during cancel failed", self.temp_path, exc_info=True)
        try:
            self.temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise FilesystemError(
                f"cannot remove temporary file {self.temp_path}: {exc}", path=str(self.target)
            ) from exc
        logger.debug("cancelled pending write %s", self.temp_path)

    def commit(self) -> None:
        """Flush the temp file and rename it over the target.

        Raises :class:`RetryConflict` when the target was modified after this
        handle was created. Every failure removes the temporary file first.
        """
        if self._file is None:
            raise FilesystemError("pending write is already resolved", path=str(self.target))
        try:
            self._flush_and_close()
            self._check_target()
            os.replace(self.temp_path, self.target)
        except RetryConflict:
            self._discard()
            raise
        except OSError as exc:
            self._discard()
            raise FilesystemError(f"commit of {self.target} failed: {exc}", path=str(self.target)) from exc
        self._file = None
        logger.debug("committed %s", self.target)

    def _flush_and_close(self) -> None:
        handle = self._file
        try:
            handle.flush()
            os.fsync(handle.fileno())
        finally:
            handle.close()

    def _check_target(self) -> None:
        try:
            stat = os.stat(self.target)
        except FileNotFoundError:
            return
        if stat.st_mtime_ns > self.created_ns:
            raise RetryConflict(
                f"{self.target} was modified after the pending write was opened",
                path=str(self.target),
            )

    def _discard(self) -> None:
        try:
            self.cancel()
        except FilesystemError:
            logger.warning("could not clean up %s", self.temp_path, exc_info=True)

    def __enter__(self) -> "AtomicFile":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self.cancel()
        return None
