"""Tests for mwkit.backoff module."""

import pytest
from unittest.mock import Mock, patch

from mwkit.backoff import (
    RetryError,
    _calculate_delay,
    _default_retryable_exceptions,
    _default_retryable_status_codes,
    retry_with_backoff,
)
from mwkit.errors import ConnectionError as MWKitConnectionError
from mwkit.errors import MWKitError


class TestCalculateDelay:
    """Tests for _calculate_delay."""

    def test_exponential_growth(self):
        """Test delay doubles per attempt without jitter."""
        assert _calculate_delay(0, 1.0, 60.0, False) == 1.0
        assert _calculate_delay(1, 1.0, 60.0, False) == 2.0
        assert _calculate_delay(3, 1.0, 60.0, False) == 8.0

    def test_capped_at_max_delay(self):
        """Test delay never exceeds max_delay."""
        assert _calculate_delay(10, 1.0, 5.0, False) == 5.0

    def test_jitter_range(self):
        """Test jitter keeps delay between 50% and 100%."""
        for _ in range(50):
            delay = _calculate_delay(2, 1.0, 60.0, True)
            assert 2.0 <= delay <= 4.0


class TestDefaults:
    """Tests for default retry policies."""

    def test_status_codes(self):
        """Test throttling and server errors are retryable."""
        codes = _default_retryable_status_codes()
        assert {408, 429, 500, 502, 503, 504} <= codes
        assert 404 not in codes

    def test_exceptions(self):
        """Test connection failures are retryable."""
        assert MWKitConnectionError in _default_retryable_exceptions()

    def test_retry_error_is_mwkit_error(self):
        """Test RetryError belongs to the library hierarchy."""
        assert issubclass(RetryError, MWKitError)


@patch('mwkit.backoff.time.sleep')
class TestRetryWithBackoff:
    """Tests for the retry_with_backoff decorator."""

    def test_success_first_try(self, mock_sleep):
        """Test no retry when the first call succeeds."""
        func = Mock(return_value=Mock(status_code=200))
        result = retry_with_backoff(max_attempts=3)(func)()

        assert result.status_code == 200
        assert func.call_count == 1
        mock_sleep.assert_not_called()

    def test_retries_retryable_status(self, mock_sleep):
        """Test retryable status codes are retried until success."""
        func = Mock(side_effect=[Mock(status_code=503), Mock(status_code=200)])
        result = retry_with_backoff(max_attempts=3, jitter=False)(func)()

        assert result.status_code == 200
        mock_sleep.assert_called_once_with(1.0)

    def test_non_retryable_status_returned(self, mock_sleep):
        """Test a 404 is returned rather than retried."""
        func = Mock(return_value=Mock(status_code=404))
        result = retry_with_backoff(max_attempts=3)(func)()

        assert result.status_code == 404
        assert func.call_count == 1

    def test_retries_exception(self, mock_sleep):
        """Test retryable exceptions are retried with growing delays."""
        func = Mock(side_effect=[MWKitConnectionError("a"), TimeoutError("b"), "done"])
        result = retry_with_backoff(max_attempts=3, jitter=False)(func)()

        assert result == "done"
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_exhausted_raises_retry_error(self, mock_sleep):
        """Test RetryError chains the last failure."""
        func = Mock(side_effect=MWKitConnectionError("down"))

        with pytest.raises(RetryError) as exc_info:
            retry_with_backoff(max_attempts=2)(func)()

        assert func.call_count == 2
        assert isinstance(exc_info.value.__cause__, MWKitConnectionError)
        assert exc_info.value.response is None

    def test_exhausted_on_status_keeps_last_response(self, mock_sleep):
        """Test RetryError carries the last response when retries end on a status code."""
        last = Mock(status_code=503)
        func = Mock(side_effect=[Mock(status_code=502), last])

        with pytest.raises(RetryError) as exc_info:
            retry_with_backoff(max_attempts=2)(func)()

        assert exc_info.value.response is last

    def test_exception_after_status_clears_response(self, mock_sleep):
        """Test a final connection failure leaves no response on RetryError."""
        func = Mock(side_effect=[Mock(status_code=503), MWKitConnectionError("down")])

        with pytest.raises(RetryError) as exc_info:
            retry_with_backoff(max_attempts=2)(func)()

        assert exc_info.value.response is None

    def test_non_retryable_exception_propagates(self, mock_sleep):
        """Test other exceptions are raised immediately."""
        func = Mock(side_effect=ValueError("bad"))

        with pytest.raises(ValueError):
            retry_with_backoff(max_attempts=3)(func)()
        assert func.call_count == 1

    def test_custom_status_codes(self, mock_sleep):
        """Test custom retryable status codes replace the defaults."""
        func = Mock(side_effect=[Mock(status_code=503)])
        result = retry_with_backoff(max_attempts=3, retryable_status_codes={418})(func)()

        assert result.status_code == 503
        assert func.call_count == 1

    def test_preserves_function_metadata(self, mock_sleep):
        """Test functools.wraps keeps the wrapped name."""
        def fetch():
            return "ok"

        wrapped = retry_with_backoff()(fetch)
        assert wrapped.__name__ == "fetch"
