"""Exception hierarchy for the cookie persistence layer."""

from __future__ import annotations

from typing import Optional


class CookieStoreError(RuntimeError):
    """Base error that carries the path of the jar file involved, if any."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class NotLoadedError(CookieStoreError):
    pass


class FilesystemError(CookieStoreError):
    pass


class SerializationError(CookieStoreError):
    pass


class RetryConflict(CookieStoreError):
    """The target file was replaced after the pending write was opened."""


class RetryLimitExceededError(CookieStoreError):
    def __init__(self, message: str, *, attempts: int, path: Optional[str] = None) -> None:
        super().__init__(message, path=path)
        self.attempts = attempts
