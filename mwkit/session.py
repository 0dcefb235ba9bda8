from __future__ import annotations

import logging

from .client import Client
from .cookies import CookieJar
from .headers import has_header
from .models import Response
from .utils import parse_url

logger = logging.getLogger(__name__)


class Session:
    """
    Client wrapper that keeps a scoped cookie jar across requests.

    Before each request the cookies applicable to the URL are sent in a
    ``Cookie`` header; afterwards every ``Set-Cookie`` header of the response
    is stored with the request host as origin.

    Args:
        **client_kwargs: Arguments passed to the underlying Client
    """

    def __init__(self, **client_kwargs) -> None:
        self.client = Client(**client_kwargs)
        self.cookies = CookieJar()

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        data: bytes | str | dict[str, str] | None = None,
        cookie_url: str | None = None,
    ) -> Response:
        """
        Send a request through the cookie jar.

        ``cookie_url`` selects and stores cookies against a different URL
        than the one requested; it defaults to ``url``.
        """
        hdrs = dict(headers or {})
        scope_url = cookie_url or url
        _, host, _, _ = parse_url(scope_url)

        cookie_header = self.cookies.cookie_header(scope_url)
        if cookie_header and not has_header(hdrs, "Cookie"):
            hdrs["Cookie"] = cookie_header

        resp = self.client.request(method, url, headers=hdrs, data=data)

        set_cookies = resp.get_all("set-cookie")
        if set_cookies:
            logger.debug("Received %d cookie(s) from %s", len(set_cookies), host)
        self.cookies.set_from_headers(resp.raw_headers, host)
        return resp

    def get(
        self, url: str, headers: dict[str, str] | None = None, **kwargs
    ) -> Response:
        return self.request("GET", url, headers=headers, **kwargs)

    def post(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        data=None,
        **kwargs,
    ) -> Response:
        return self.request("POST", url, headers=headers, data=data, **kwargs)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
