"""Service-layer exports."""
from .atomic_file import AtomicFile
from .cookie_store import CookieStore, open_store
from .errors import (
    CookieStoreError,
    FilesystemError,
    NotLoadedError,
    RetryConflict,
    RetryLimitExceededError,
    SerializationError,
)
from .http_client import HTTPClient
from .models import Entry

__all__ = [
    "AtomicFile",
    "CookieStore",
    "CookieStoreError",
    "Entry",
    "FilesystemError",
    "HTTPClient",
    "NotLoadedError",
    "RetryConflict",
    "RetryLimitExceededError",
    "SerializationError",
    "open_store",
]
