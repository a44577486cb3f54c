"""Cookie record stored in the jar document."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from http.cookiejar import Cookie
from typing import Any, Dict, Optional

_FIELDS = {
    "Name": "name",
    "Value": "value",
    "Domain": "domain",
    "Path": "path",
    "SameSite": "same_site",
    "Secure": "secure",
    "HttpOnly": "http_only",
    "Persistent": "persistent",
    "HostOnly": "host_only",
    "Expires": "expires",
    "Creation": "creation",
    "LastAccess": "last_access",
    "Updated": "updated",
    "CanonicalHost": "canonical_host",
}
_TIMESTAMPS = ("expires", "creation", "last_access", "updated")
_FLAGS = ("secure", "http_only", "persistent", "host_only")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _parse_time(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO-8601 string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True)
class Entry:
    name: str
    value: str = ""
    domain: str = ""
    path: str = "/"
    same_site: str = ""
    secure: bool = False
    http_only: bool = False
    persistent: bool = False
    host_only: bool = False
    expires: Optional[datetime] = None
    creation: Optional[datetime] = None
    last_access: Optional[datetime] = None
    updated: Optional[datetime] = None
    canonical_host: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)
    # Timestamp strings as read, written back while the parsed value is unchanged.
    wire_times: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)

    @property
    def id(self) -> str:
        return f"{self.domain};{self.path};{self.name}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        """Build an entry from its wire form.

        Raises ``ValueError`` or ``TypeError`` on malformed fields. Keys that
        are not record fields are kept in ``extra``.
        """
        if not isinstance(data, dict):
            raise TypeError(f"cookie record must be an object, got {type(data).__name__}")
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        wire_times: Dict[str, str] = {}
        for key, value in data.items():
            attr = _FIELDS.get(key)
            if attr is None:
                extra[key] = value
            elif attr in _TIMESTAMPS:
                kwargs[attr] = _parse_time(value)
                if isinstance(value, str) and value:
                    wire_times[attr] = value
            elif attr in _FLAGS:
                if not isinstance(value, bool):
                    raise TypeError(f"{key} must be a boolean")
                kwargs[attr] = value
            else:
                if not isinstance(value, str):
                    raise TypeError(f"{key} must be a string")
                kwargs[attr] = value
        if "name" not in kwargs:
            raise ValueError("cookie record has no Name")
        return cls(extra=extra, wire_times=wire_times, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extra)
        for key, attr in _FIELDS.items():
            value = getattr(self, attr)
            if attr in _TIMESTAMPS:
                value = self._wire_time(attr, value)
            payload[key] = value
        return payload

    def _wire_time(self, attr: str, value: Optional[datetime]) -> Optional[str]:
        wire = self.wire_times.get(attr)
        if wire is not None and value is not None and _parse_time(wire) == value:
            return wire
        return _format_time(value)

    @classmethod
    def from_cookie(cls, cookie: Cookie) -> "Entry":
        now = _utcnow()
        expires = None
        if cookie.expires is not None:
            expires = datetime.fromtimestamp(cookie.expires, tz=timezone.utc)
        domain = cookie.domain.lstrip(".")
        return cls(
            name=cookie.name,
            value=cookie.value or "",
            domain=domain,
            path=cookie.path or "/",
            same_site=cookie.get_nonstandard_attr("SameSite", "") or "",
            secure=bool(cookie.secure),
            http_only=cookie.has_nonstandard_attr("HttpOnly"),
            persistent=not cookie.discard,
            host_only=not cookie.domain_specified,
            expires=expires,
            creation=now,
            last_access=now,
            updated=now,
            canonical_host=domain,
        )

    def to_cookie(self) -> Cookie:
        rest: Dict[str, Optional[str]] = {}
        if self.http_only:
            rest["HttpOnly"] = None
        if self.same_site:
            rest["SameSite"] = self.same_site
        domain = self.domain if self.host_only else f".{self.domain}"
        return Cookie(
            version=0,
            name=self.name,
            value=self.value,
            port=None,
            port_specified=False,
            domain=domain,
            domain_specified=not self.host_only,
            domain_initial_dot=not self.host_only,
            path=self.path,
            path_specified=True,
            secure=self.secure,
            expires=int(self.expires.timestamp()) if self.expires is not None else None,
            discard=not self.persistent,
            comment=None,
            comment_url=None,
            rest=rest,
        )
