from __future__ import annotations

from typing import Any


class MWKitError(Exception):
    """Base error for mwkit."""


class ConnectionError(MWKitError):
    """Raised when a TCP/TLS connection fails."""


class TLSNegotiationError(ConnectionError):
    """Raised when TLS handshake does not meet expectations."""


class ProtocolError(MWKitError):
    """Raised when an HTTP protocol error occurs."""


class HTTPError(MWKitError):
    """Raised for HTTP-level issues."""


class MediaWikiApiError(HTTPError):
    """
    Raised when the MediaWiki API answers with a failure.

    ``code`` and ``info`` are lifted from the ``error`` object of the decoded
    response body when the API returned one.
    """

    def __init__(
        self,
        message: str,
        status: int,
        response_text: str = "",
        response_data: Any = None,
    ) -> None:
        self.status = status
        self.response_text = response_text
        self.response_data = response_data
        self.code: str | None = None
        self.info: str | None = None

        error = response_data.get("error") if isinstance(response_data, dict) else None
        if isinstance(error, dict):
            self.code = error.get("code")
            self.info = error.get("info")
            if self.info and message.startswith("Request failed"):
                message = (
                    f"Request failed with status {status}: {self.info} "
                    f"(Code: {self.code or 'N/A'})"
                )
            elif self.code and message.startswith("Request failed"):
                message = f"Request failed with status {status} (Code: {self.code})"
        super().__init__(message)


class LoginError(MWKitError):
    """Raised when logging in to the wiki fails."""


class NotAuthorizedError(MWKitError):
    """Raised when an operation needs a logged-in client."""


class SiteInfoNotLoadedError(MWKitError):
    """Raised when site info accessors are used before ``site_info()``."""
