from __future__ import annotations

import logging
import urllib.parse

from mwkit import __version__
from mwkit.backoff import retry_with_backoff
from mwkit.compression import get_accept_encoding
from mwkit.headers import canonicalize_headers
from mwkit.models import Response
from mwkit.pool import ConnectionPool
from mwkit.utils import parse_url

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"mwkit/{__version__} (https://github.com/mwkit/mwkit)"


class Client:
    """
    Minimal synchronous HTTP/1.1 client with keep-alive pooling.

    Args:
        timeout: Request timeout in seconds
        verify: Whether to verify SSL certificates
        max_per_host: Maximum idle connections kept per host
        auto_decompress: Automatically decompress gzip/deflate/br responses (default: True)
        user_agent: User-Agent header; Wikimedia sites reject requests without one
        max_retries: Extra attempts on connection errors and retryable status codes
        retry_base_delay: First backoff delay in seconds
        retry_max_delay: Upper bound for a single backoff delay
        retry_jitter: Randomize backoff delays
    """

    def __init__(
        self,
        timeout: float = 10.0,
        verify: bool = True,
        max_per_host: int = 4,
        auto_decompress: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        max_retries: int = 0,
        retry_base_delay: float = 1.0,
        retry_max_delay: float = 60.0,
        retry_jitter: bool = True,
    ) -> None:
        self.pool = ConnectionPool(
            timeout=timeout,
            verify=verify,
            max_per_host=max_per_host,
            auto_decompress=auto_decompress,
        )
        self.timeout = timeout
        self.verify = verify
        self.auto_decompress = auto_decompress
        self.user_agent = user_agent
        # Retry configuration
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.retry_jitter = retry_jitter

    def _encode_body(
        self, data: bytes | str | dict[str, str] | None, final_headers: dict[str, str]
    ) -> bytes | None:
        if data is None:
            return None
        if isinstance(data, bytes):
            return data
        if isinstance(data, str):
            return data.encode("utf-8")
        if isinstance(data, dict):
            final_headers["Content-Type"] = "application/x-www-form-urlencoded; charset=utf-8"
            return urllib.parse.urlencode(data).encode("utf-8")
        raise TypeError("Unsupported data type for request body")

    def _make_request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        data: bytes | str | dict[str, str] | None = None,
    ) -> Response:
        parsed, host, port, path = parse_url(url)
        method = method.upper()
        final_headers: dict[str, str] = {
            "Host": host if parsed.port is None else f"{host}:{port}",
            "Connection": "keep-alive",
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            "Accept-Encoding": get_accept_encoding(self.auto_decompress),
        }

        body = self._encode_body(data, final_headers)
        if body is not None:
            final_headers["Content-Length"] = str(len(body))
        elif method in ("POST", "PUT"):
            final_headers["Content-Length"] = "0"

        # Merge: computed defaults -> user overrides.
        merged_headers = canonicalize_headers(final_headers.items(), headers)

        logger.debug("%s %s://%s%s", method, parsed.scheme, host, parsed.path or "/")
        conn = self.pool.acquire(parsed.scheme, host, port)
        try:
            response = conn.request(method, path, merged_headers, body)
        except Exception:
            conn.close()
            raise

        if not conn.closed:
            self.pool.release(conn)
        logger.debug("%s %s -> %d", method, host, response.status_code)
        return response

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        data: bytes | str | dict[str, str] | None = None,
    ) -> Response:
        """
        Make an HTTP request with optional retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            headers: Additional headers
            data: Request body; dicts are form-encoded

        Returns:
            Response object
        """
        if self.max_retries <= 0:
            return self._make_request(method, url, headers, data)

        retry_decorator = retry_with_backoff(
            max_attempts=self.max_retries + 1,  # +1 for initial attempt
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            jitter=self.retry_jitter,
        )
        return retry_decorator(self._make_request)(method, url, headers, data)

    def get(self, url: str, headers: dict[str, str] | None = None) -> Response:
        return self.request("GET", url, headers=headers, data=None)

    def post(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        data: bytes | str | dict[str, str] | None = None,
    ) -> Response:
        return self.request("POST", url, headers=headers, data=data)

    def close(self) -> None:
        self.pool.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
