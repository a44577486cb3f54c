"""JSON codec for the jar document (domain -> key -> entry)."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict

from .errors import FilesystemError, SerializationError
from .models import Entry

Document = Dict[str, Dict[str, Entry]]


def encode_document(document: Document) -> bytes:
    try:
        payload = {
            domain: {key: entry.to_dict() for key, entry in entries.items()}
            for domain, entries in document.items()
        }
        text = json.dumps(payload, indent=2, sort_keys=True)
    except (TypeError, ValueError, AttributeError) as exc:
        raise SerializationError(f"cannot encode cookie document: {exc}") from exc
    return (text + "\n").encode("utf-8")


def decode_document(data: bytes | str, *, path: str | None = None) -> Document:
    """Decode a full document. Empty input and ``null`` give an empty document."""
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SerializationError(f"cookie document is not UTF-8: {exc}", path=path) from exc
    if not data.strip():
        return {}
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"invalid cookie document: {exc}", path=path) from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise SerializationError("cookie document must be a JSON object", path=path)

    document: Document = {}
    for domain, entries in payload.items():
        if entries is None:
            document[domain] = {}
            continue
        if not isinstance(entries, dict):
            raise SerializationError(f"entries for {domain!r} must be a JSON object", path=path)
        decoded: Dict[str, Entry] = {}
        for key, record in entries.items():
            try:
                decoded[key] = Entry.from_dict(record)
            except (TypeError, ValueError) as exc:
                raise SerializationError(f"bad record {domain!r}/{key!r}: {exc}", path=path) from exc
        document[domain] = decoded
    return document


def load_document(path: str | os.PathLike[str]) -> Document:
    """Read and decode ``path``. A missing file is an empty document."""
    path = Path(path)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise FilesystemError(f"cannot read {path}: {exc}", path=str(path)) from exc
    return decode_document(raw, path=str(path))
