"""Pytest configuration and fixtures."""

import json

import pytest
from mwkit.models import Response
from mwkit.wiki import MediaWiki


def make_response(payload=None, status_code=200, headers=None, body=None):
    """Build a Response carrying a JSON payload."""
    if body is None:
        body = json.dumps(payload if payload is not None else {}).encode("utf-8")
    return Response(
        status_code=status_code,
        reason="OK" if status_code < 400 else "Error",
        http_version="1.1",
        headers=[("Content-Type", "application/json; charset=utf-8"), *(headers or [])],
        body=body,
    )


@pytest.fixture
def mock_client(mocker):
    """Patch the Client used by Session and return the instance mock."""
    client_class = mocker.patch("mwkit.session.Client")
    client = client_class.return_value
    client.request.return_value = make_response({})
    return client


@pytest.fixture
def wiki(mock_client):
    """MediaWiki client whose transport is mocked."""
    return MediaWiki("https://wiki.example.org/w")
