"""REST API routes for inspecting and persisting the cookie jar."""
from __future__ import annotations

from http import HTTPStatus
from typing import Any, Dict

import requests
from flask import Blueprint, current_app, jsonify, request

from ..services.cookie_store import CookieStore
from ..services.errors import CookieStoreError, NotLoadedError, SerializationError
from ..services.http_client import HTTPClient
from ..services.models import Entry

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _store() -> CookieStore:
    return current_app.config["COOKIE_STORE"]


def _client() -> HTTPClient:
    return current_app.config["HTTP_CLIENT"]


def _domain_payload(entries: Dict[str, Entry]) -> Dict[str, Any]:
    return {key: entry.to_dict() for key, entry in entries.items()}


@api_bp.errorhandler(CookieStoreError)
def _handle_store_error(exc: CookieStoreError):
    payload = {"error": str(exc)}
    if exc.path is not None:
        payload["path"] = exc.path

    if isinstance(exc, NotLoadedError):
        status = HTTPStatus.CONFLICT
    elif isinstance(exc, SerializationError):
        status = HTTPStatus.BAD_REQUEST
    else:
        status = HTTPStatus.INTERNAL_SERVER_ERROR
    return jsonify(payload), status


@api_bp.get("/cookies")
def list_cookies():
    document = _store().snapshot()
    return jsonify({domain: _domain_payload(entries) for domain, entries in document.items()})


@api_bp.get("/cookies/<domain>")
def domain_cookies(domain: str):
    entries = _store().snapshot().get(domain)
    if entries is None:
        return jsonify({"error": f"unknown domain {domain}"}), HTTPStatus.NOT_FOUND
    return jsonify(_domain_payload(entries))


@api_bp.put("/cookies/<domain>/<path:key>")
def put_cookie(domain: str, key: str):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "a JSON object is required"}), HTTPStatus.BAD_REQUEST
    try:
        entry = Entry.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"bad cookie record: {exc}") from exc
    _store().set(domain, key, entry)
    return jsonify(entry.to_dict()), HTTPStatus.CREATED


@api_bp.delete("/cookies/<domain>/<path:key>")
def delete_cookie(domain: str, key: str):
    if not _store().remove(domain, key):
        return jsonify({"error": f"no cookie {key} for {domain}"}), HTTPStatus.NOT_FOUND
    return jsonify({"status": "deleted"})


@api_bp.post("/cookies/save")
def save_cookies():
    store = _store()
    store.save()
    return jsonify({"status": "saved", "path": str(store.path), "count": len(store)})


@api_bp.post("/cookies/reload")
def reload_cookies():
    store = _store()
    store.load()
    _client().reseed()
    return jsonify({"status": "loaded", "path": str(store.path), "count": len(store)})


@api_bp.post("/fetch")
def fetch():
    data = request.get_json(silent=True) or {}
    url = data.get("url")
    if not url:
        return jsonify({"error": "url is required"}), HTTPStatus.BAD_REQUEST

    try:
        response = _client().get(url, timeout=data.get("timeout", 30))
    except requests.RequestException as exc:
        return jsonify({"error": str(exc)}), HTTPStatus.BAD_GATEWAY

    return jsonify({"status": response.status_code, "cookies": len(_store())})
