"""Thin wrapper around ``requests`` that keeps the cookie store in sync."""
from __future__ import annotations

import logging
from typing import Any

import requests

from .cookie_store import CookieStore

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "cookiejar-api/0.1"


class HTTPClient:
    def __init__(self, cookie_store: CookieStore, verify: bool | str = True, autosave: bool = True) -> None:
        self._cookie_store = cookie_store
        self._autosave = autosave
        self.session = requests.Session()
        self.session.headers["User-Agent"] = DEFAULT_USER_AGENT
        self.session.verify = verify
        cookie_store.attach_to(self.session)

    @property
    def cookie_store(self) -> CookieStore:
        return self._cookie_store

    def reseed(self) -> None:
        """Replace the session cookies with the ones currently in the store."""
        self.session.cookies.clear()
        self._cookie_store.attach_to(self.session)

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        response = self.session.request(method=method, url=url, **kwargs)
        logger.debug("HTTP %s %s -> %s", method, url, response.status_code)
        self._cookie_store.capture(self.session.cookies)
        if self._autosave:
            self._cookie_store.save()
        return response

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", url, **kwargs)
