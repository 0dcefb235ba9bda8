"""
Cookie jar with domain, path, secure and expiry scoping.

Cookies are stored keyed by ``(name, domain, path)``. Expired cookies stay
in storage and are filtered out when cookies are selected for a request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from .utils import parse_url

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_http_date(value: str) -> datetime | None:
    """Parse an HTTP date into an aware UTC datetime, or ``None``."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class Cookie:
    name: str
    value: str
    domain: str = ""
    path: str = "/"
    expires: datetime | None = None
    secure: bool | None = None
    http_only: bool | None = None
    same_site: str | None = None
    host_only: bool | None = None
    creation_time: datetime = field(default_factory=_utcnow)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.name, self.domain, self.path)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires is None:
            return False
        return self.expires < (now or _utcnow())

    def domain_matches(self, hostname: str) -> bool:
        if self.host_only:
            return hostname == self.domain
        return hostname == self.domain or hostname.endswith("." + self.domain)

    def path_matches(self, path: str) -> bool:
        # Plain prefix: "/foo" also matches "/foobar".
        return path.startswith(self.path)

    def matches(
        self, scheme: str, hostname: str, path: str, now: datetime | None = None
    ) -> bool:
        if self.is_expired(now):
            return False
        if self.secure and scheme != "https":
            return False
        return self.domain_matches(hostname) and self.path_matches(path)

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


class CookieJar:
    """
    In-memory cookie jar owned by a single client.

    ``parse_set_cookie`` stores cookies from ``Set-Cookie`` header values and
    ``get_cookies`` answers which of them may be sent to a given URL.
    Not thread-safe; calls are expected to be sequential.
    """

    def __init__(self) -> None:
        # Dicts keep insertion order and replacing a value keeps its slot.
        self.store: dict[tuple[str, str, str], Cookie] = {}

    def parse_set_cookie(self, header_line: str, origin_host: str) -> None:
        parts = [part.strip() for part in header_line.split(";")]
        name, _, value = parts[0].partition("=")
        cookie = Cookie(name=name, value=value)

        for attr in parts[1:]:
            key, _, val = attr.partition("=")
            key = key.lower()
            if key == "expires":
                expires = parse_http_date(val)
                if expires is None:
                    logger.warning("Ignoring unparseable cookie expiry %r", val)
                else:
                    cookie.expires = expires
            elif key == "path":
                cookie.path = val
            elif key == "domain":
                cookie.domain = val[1:] if val.startswith(".") else val
            elif key == "secure":
                cookie.secure = True
            elif key == "httponly":
                cookie.http_only = True
            elif key == "samesite":
                cookie.same_site = val

        if not cookie.domain:
            cookie.domain = origin_host
            cookie.host_only = True

        self._store_cookie(cookie)

    def _store_cookie(self, cookie: Cookie) -> None:
        logger.debug(
            "Storing cookie %s for domain=%s path=%s",
            cookie.name,
            cookie.domain,
            cookie.path,
        )
        self.store[cookie.key] = cookie

    def get_cookies(self, url: str) -> list[Cookie]:
        """
        Return stored cookies valid for a request to ``url``, in storage order.

        Raises ``ValueError`` if ``url`` is not an absolute http(s) URL.
        """
        parsed, host, _, _ = parse_url(url)
        path = parsed.path or "/"
        now = _utcnow()
        return [
            cookie
            for cookie in self.store.values()
            if cookie.matches(parsed.scheme, host, path, now)
        ]

    def cookie_header(self, url: str) -> str | None:
        cookies = self.get_cookies(url)
        if not cookies:
            return None
        return "; ".join(str(cookie) for cookie in cookies)

    def set_from_headers(self, headers: Iterable[tuple[str, str]], host: str) -> None:
        for name, value in headers:
            if name.lower() != "set-cookie":
                continue
            self.parse_set_cookie(value, host)

    def clear(self) -> None:
        self.store.clear()

    def __len__(self) -> int:
        return len(self.store)

    def __iter__(self) -> Iterator[Cookie]:
        return iter(list(self.store.values()))

    def __repr__(self) -> str:
        return f"<CookieJar {[str(c) for c in self.store.values()]}>"
