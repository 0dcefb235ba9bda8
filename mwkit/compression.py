"""
Compression utilities for automatic content decompression.

Supports gzip, deflate, and brotli (br) encodings.
"""

from __future__ import annotations

import gzip
import io
import zlib

import brotli

DEFAULT_ACCEPT_ENCODING = "gzip, deflate, br"


def decode_body(body: bytes, content_encoding: str) -> bytes:
    """
    Decode response body based on Content-Encoding header.

    Args:
        body: Raw response body bytes
        content_encoding: Value of Content-Encoding header

    Returns:
        Decoded body bytes, or the input unchanged if it cannot be decoded
    """
    if not content_encoding or not body:
        return body

    # Stacked encodings are undone last-applied first.
    encodings = [e.strip() for e in content_encoding.lower().split(",")]

    result = body
    for enc in reversed(encodings):
        result = _decode_single(result, enc)
    return result


def _decode_single(body: bytes, encoding: str) -> bytes:
    if encoding == "gzip":
        try:
            with gzip.GzipFile(fileobj=io.BytesIO(body)) as f:
                return f.read()
        except (OSError, EOFError, zlib.error):
            return body

    if encoding == "deflate":
        try:
            return zlib.decompress(body, -zlib.MAX_WBITS)
        except zlib.error:
            try:
                return zlib.decompress(body)
            except zlib.error:
                return body

    if encoding == "br":
        try:
            return brotli.decompress(body)
        except brotli.error:
            return body

    return body


def get_accept_encoding(auto_decompress: bool = True) -> str:
    if not auto_decompress:
        return "identity"
    return DEFAULT_ACCEPT_ENCODING
