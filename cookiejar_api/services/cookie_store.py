"""Persistent cookie storage compatible with ``requests`` sessions.

The store keeps one document (domain -> key -> :class:`Entry`) in memory and
saves it with :class:`AtomicFile`. Two processes may load, modify and save
the same file without a lock: when a save loses the race, the newer file is
merged on top of the in-memory document and the save is retried.
"""
from __future__ import annotations

import copy
import logging
import os
import threading
import time
from http.cookiejar import CookieJar
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple

from .atomic_file import AtomicFile, Clock
from .errors import (
    FilesystemError,
    NotLoadedError,
    RetryConflict,
    RetryLimitExceededError,
    SerializationError,
)
from .models import Entry
from .serialize import Document, decode_document, encode_document, load_document

logger = logging.getLogger(__name__)


class CookieStore:
    """In-memory cookie document plus the path it is persisted to.

    ``max_attempts`` bounds the conflict-retry loop of :meth:`save` (and the
    reloads it performs while merging). ``None`` retries until the save
    succeeds or fails for a reason other than a conflict.
    """

    def __init__(
        self,
        path: Optional[str | os.PathLike[str]] = None,
        *,
        max_attempts: Optional[int] = None,
        clock: Clock = time.time_ns,
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be a positive integer")
        self._lock = threading.RLock()
        self._entries: Document = {}
        self._path: Optional[Path] = Path(path) if path is not None else None
        self._max_attempts = max_attempts
        self._clock = clock

    @property
    def path(self) -> Optional[Path]:
        with self._lock:
            return self._path

    @path.setter
    def path(self, value: Optional[str | os.PathLike[str]]) -> None:
        with self._lock:
            self._path = Path(value) if value is not None else None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self, path: Optional[str | os.PathLike[str]] = None) -> None:
        """Replace the document with the contents of ``path``.

        A missing file loads as an empty document. The path is remembered and
        used by later :meth:`save` calls.
        """
        if path is None:
            path = self.path
            if path is None:
                raise NotLoadedError("load called without a path on an unbound cookie store")
        document = load_document(path)
        with self._lock:
            self._entries = document
            self._path = Path(path)

    def save(self) -> None:
        """Write the document to the remembered path.

        When another writer replaced the file after this attempt started, its
        entries are merged on top of ours (theirs win per key) and the save
        starts over with a fresh temporary file.
        """
        path = self.path
        if path is None:
            raise NotLoadedError("save called on non-loaded cookie store")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"cannot create {path.parent}: {exc}", path=str(path)) from exc

        attempt = 0
        while True:
            attempt += 1
            self._check_attempts(attempt, path)
            handle = AtomicFile.create(path, clock=self._clock)
            try:
                self.write_to(handle)
            except Exception:
                handle.cancel()
                raise
            try:
                handle.commit()
            except RetryConflict:
                logger.info("%s changed during save (attempt %d), merging newer entries", path, attempt)
            else:
                logger.debug("saved cookie document to %s after %d attempt(s)", path, attempt)
                return
            document, attempt = self._reload(path, attempt)
            self.merge_entries(document)

    def write_to(self, stream: BinaryIO) -> None:
        """Encode the whole document as JSON into ``stream``."""
        with self._lock:
            data = encode_document(self._entries)
        stream.write(data)

    def read_from(self, stream: BinaryIO) -> None:
        """Replace the document with one decoded from ``stream``."""
        document = decode_document(stream.read())
        with self._lock:
            self._entries = document

    def merge_entries(self, document: Document) -> None:
        """Overlay ``document`` on the in-memory one; its values win per key."""
        with self._lock:
            for domain, entries in document.items():
                self._entries.setdefault(domain, {}).update(entries)

    def _reload(self, path: Path, attempt: int) -> Tuple[Document, int]:
        # A failed reload uses up an attempt like a conflicting commit does.
        while True:
            try:
                return load_document(path), attempt
            except (FilesystemError, SerializationError) as exc:
                attempt += 1
                logger.warning("reloading %s for merge failed (%s), retrying", path, exc)
                self._check_attempts(attempt, path)

    def _check_attempts(self, attempt: int, path: Path) -> None:
        if self._max_attempts is not None and attempt > self._max_attempts:
            raise RetryLimitExceededError(
                f"gave up saving {path} after {self._max_attempts} attempts",
                attempts=self._max_attempts,
                path=str(path),
            )

    # ------------------------------------------------------------------
    # Document access
    # ------------------------------------------------------------------

    def get(self, domain: str, key: str) -> Optional[Entry]:
        with self._lock:
            return self._entries.get(domain, {}).get(key)

    def set(self, domain: str, key: str, entry: Entry) -> None:
        with self._lock:
            self._entries.setdefault(domain, {})[key] = entry

    def remove(self, domain: str, key: str) -> bool:
        with self._lock:
            entries = self._entries.get(domain)
            if entries is None or key not in entries:
                return False
            del entries[key]
            if not entries:
                del self._entries[domain]
            return True

    def clear_domain(self, domain: str) -> None:
        with self._lock:
            self._entries.pop(domain, None)

    def domains(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def snapshot(self) -> Document:
        with self._lock:
            return copy.deepcopy(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._entries.values())

    # ------------------------------------------------------------------
    # http.cookiejar / requests integration
    # ------------------------------------------------------------------

    def capture(self, jar: CookieJar) -> None:
        """Copy every cookie in ``jar`` into the document."""
        with self._lock:
            for cookie in jar:
                entry = Entry.from_cookie(cookie)
                entries = self._entries.setdefault(entry.domain, {})
                previous = entries.get(entry.id)
                if previous is not None and previous.creation is not None:
                    entry.creation = previous.creation
                entries[entry.id] = entry

    def apply_to(self, jar: CookieJar) -> None:
        with self._lock:
            cookies = [entry.to_cookie() for entries in self._entries.values() for entry in entries.values()]
        for cookie in cookies:
            jar.set_cookie(cookie)

    def attach_to(self, session) -> None:
        self.apply_to(session.cookies)


def open_store(path: str | os.PathLike[str], *, max_attempts: Optional[int] = None) -> CookieStore:
    """Create a store and load it from ``path``."""
    store = CookieStore(max_attempts=max_attempts)
    store.load(path)
    return store

