from __future__ import annotations

import urllib.parse
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse


def parse_url(url: str):
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError("Only http and https schemes are supported")
    host = parsed.hostname or ""
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return parsed, host, port, path


def encode_param(value: Any) -> str | None:
    """
    Render a single API parameter value.

    MediaWiki treats the mere presence of a flag as true, so ``False`` and
    ``None`` drop the parameter. Sequences are joined with ``|``.
    """
    if value is None or value is False:
        return None
    if value is True:
        return "1"
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        return "|".join(str(v) for v in value)
    return str(value)


def filter_params(params: Mapping[str, Any]) -> dict[str, str]:
    out: dict[str, str] = {}
    for key, value in params.items():
        encoded = encode_param(value)
        if encoded is not None:
            out[key] = encoded
    return out


def form_urlencode(params: Mapping[str, Any]) -> str:
    return urllib.parse.urlencode(filter_params(params))


def with_query(url: str, params: Mapping[str, Any]) -> str:
    """Append filtered ``params`` to the query string of ``url``."""
    query = form_urlencode(params)
    if not query:
        return url
    sep = "&" if urlparse(url).query else "?"
    return f"{url}{sep}{query}"
