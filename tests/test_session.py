"""Tests for mwkit.session module."""

import pytest
from unittest.mock import patch, MagicMock
from mwkit.session import Session
from mwkit.models import Response


def _response(headers=None):
    return Response(200, "OK", "1.1", headers=headers or [], body=b"")


class TestSession:
    """Tests for Session class."""

    @patch('mwkit.session.Client')
    def test_session_passes_kwargs_to_client(self, mock_client_class):
        """Test Session passes kwargs to Client."""
        Session(timeout=30.0, verify=False)
        mock_client_class.assert_called_once_with(timeout=30.0, verify=False)

    @patch('mwkit.session.Client')
    def test_session_has_empty_cookie_jar(self, mock_client_class):
        """Test Session starts with an empty CookieJar."""
        session = Session()
        assert len(session.cookies) == 0

    @patch('mwkit.session.Client')
    def test_request_attaches_cookies(self, mock_client_class):
        """Test request attaches applicable cookies from the jar."""
        mock_client = MagicMock()
        mock_client.request.return_value = _response()
        mock_client_class.return_value = mock_client

        session = Session()
        session.cookies.parse_set_cookie("session=abc123", "example.com")
        session.cookies.parse_set_cookie("other=1", "other.com")

        session.request("GET", "https://example.com/path")

        headers = mock_client.request.call_args.kwargs["headers"]
        assert headers["Cookie"] == "session=abc123"

    @patch('mwkit.session.Client')
    def test_request_no_cookie_when_not_set(self, mock_client_class):
        """Test request doesn't add Cookie header when no cookies apply."""
        mock_client = MagicMock()
        mock_client.request.return_value = _response()
        mock_client_class.return_value = mock_client

        session = Session()
        session.request("GET", "https://example.com/path", headers={"X-Custom": "value"})

        headers = mock_client.request.call_args.kwargs["headers"]
        assert headers == {"X-Custom": "value"}

    @patch('mwkit.session.Client')
    def test_user_cookie_header_wins(self, mock_client_class):
        """Test a caller-supplied Cookie header is not overwritten."""
        mock_client = MagicMock()
        mock_client.request.return_value = _response()
        mock_client_class.return_value = mock_client

        session = Session()
        session.cookies.parse_set_cookie("session=abc", "example.com")
        session.request("GET", "https://example.com/", headers={"cookie": "mine=1"})

        headers = mock_client.request.call_args.kwargs["headers"]
        assert headers == {"cookie": "mine=1"}

    @patch('mwkit.session.Client')
    def test_request_captures_every_set_cookie(self, mock_client_class):
        """Test all Set-Cookie headers are stored with the request host as origin."""
        mock_client = MagicMock()
        mock_client.request.return_value = _response(
            [("Set-Cookie", "token=xyz"), ("Set-Cookie", "lang=en; Path=/wiki")]
        )
        mock_client_class.return_value = mock_client

        session = Session()
        session.request("GET", "https://example.com/path")

        assert session.cookies.cookie_header("https://example.com/") == "token=xyz"
        assert session.cookies.cookie_header("https://example.com/wiki/Main") == "token=xyz; lang=en"
        assert all(c.domain == "example.com" for c in session.cookies)

    @patch('mwkit.session.Client')
    def test_cookie_url_scopes_cookies(self, mock_client_class):
        """Test cookie_url selects and stores cookies for another URL."""
        mock_client = MagicMock()
        mock_client.request.return_value = _response([("Set-Cookie", "b=2")])
        mock_client_class.return_value = mock_client

        session = Session()
        session.cookies.parse_set_cookie("a=1; Path=/w/api.php", "wiki.example.org")
        session.request(
            "GET",
            "https://wiki.example.org/w/api.php?action=query",
            cookie_url="https://wiki.example.org/w/api.php",
        )

        headers = mock_client.request.call_args.kwargs["headers"]
        assert headers["Cookie"] == "a=1"
        assert next(c for c in session.cookies if c.name == "b").domain == "wiki.example.org"

    @patch('mwkit.session.Client')
    def test_cookies_round_trip_between_requests(self, mock_client_class):
        """Test cookies from one response are sent on the next request."""
        mock_client = MagicMock()
        mock_client.request.side_effect = [
            _response([("Set-Cookie", "sid=1; Secure; HttpOnly")]),
            _response(),
        ]
        mock_client_class.return_value = mock_client

        session = Session()
        session.get("https://example.com/login")
        session.get("https://example.com/home")

        headers = mock_client.request.call_args.kwargs["headers"]
        assert headers["Cookie"] == "sid=1"

    @patch('mwkit.session.Client')
    def test_get_method(self, mock_client_class):
        """Test get() method calls request with GET."""
        mock_client = MagicMock()
        mock_client.request.return_value = _response()
        mock_client_class.return_value = mock_client

        session = Session()
        session.get("https://example.com")

        args, kwargs = mock_client.request.call_args
        assert args[0] == "GET"

    @patch('mwkit.session.Client')
    def test_post_method(self, mock_client_class):
        """Test post() method forwards data."""
        mock_client = MagicMock()
        mock_client.request.return_value = _response()
        mock_client_class.return_value = mock_client

        session = Session()
        session.post("https://example.com", data={"key": "value"})

        args, kwargs = mock_client.request.call_args
        assert args[0] == "POST"
        assert kwargs["data"] == {"key": "value"}

    @patch('mwkit.session.Client')
    def test_invalid_url_raises(self, mock_client_class):
        """Test non-http URLs are rejected before sending."""
        session = Session()
        with pytest.raises(ValueError):
            session.get("ftp://example.com/")
        mock_client_class.return_value.request.assert_not_called()

    @patch('mwkit.session.Client')
    def test_context_manager_closes_client(self, mock_client_class):
        """Test Session context manager calls close on exit."""
        mock_client = MagicMock()
        mock_client_class.return_value = mock_client

        with Session() as session:
            assert isinstance(session, Session)

        mock_client.close.assert_called_once()
