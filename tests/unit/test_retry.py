"""
Unit tests for the retry utilities module.
"""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from vault_apr_toolkit.shared.exceptions import (
    ChainReadError,
    NonRetryableException,
)
from vault_apr_toolkit.shared.retry import (
    HTTP_RETRY_CONFIG,
    RPC_RETRY_CONFIG,
    RetryConfig,
    retry_sync_operation,
)


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("vault_apr_toolkit.shared.retry.time.sleep") as sleep:
        yield sleep


def sleeps(no_sleep):
    return [c.args[0] for c in no_sleep.call_args_list]


class TestRetrySyncOperation:
    """Tests for retry_sync_operation."""

    def test_succeeds_first_try(self):
        mock_fn = MagicMock(return_value="success")

        assert retry_sync_operation(mock_fn) == "success"
        assert mock_fn.call_count == 1

    def test_succeeds_after_retry(self):
        mock_fn = MagicMock(
            side_effect=[ConnectionError("fail"), TimeoutError("fail"), "ok"]
        )
        config = RetryConfig(max_attempts=3, base_delay=0.01)

        assert retry_sync_operation(mock_fn, config=config) == "ok"
        assert mock_fn.call_count == 3

    def test_fails_after_max_attempts(self):
        mock_fn = MagicMock(side_effect=ChainReadError("always fail"))
        config = RetryConfig(max_attempts=3, base_delay=0.01)

        with pytest.raises(ChainReadError, match="always fail"):
            retry_sync_operation(mock_fn, config=config)

        assert mock_fn.call_count == 3

    def test_non_retryable_propagates_immediately(self):
        mock_fn = MagicMock(side_effect=NonRetryableException("bad data"))

        with pytest.raises(NonRetryableException):
            retry_sync_operation(mock_fn)

        assert mock_fn.call_count == 1

    def test_passes_arguments(self):
        mock_fn = MagicMock(return_value=3)

        assert retry_sync_operation(mock_fn, 1, b=2) == 3
        mock_fn.assert_called_once_with(1, b=2)

    def test_exponential_backoff(self, no_sleep):
        mock_fn = MagicMock(side_effect=[OSError(), OSError(), OSError(), "ok"])
        config = RetryConfig(max_attempts=4, base_delay=1.0, max_delay=30.0)

        retry_sync_operation(mock_fn, config=config)

        assert sleeps(no_sleep) == [1.0, 2.0, 4.0]

    def test_linear_backoff(self, no_sleep):
        mock_fn = MagicMock(side_effect=[OSError(), OSError(), "ok"])
        config = RetryConfig(max_attempts=3, base_delay=0.5, exponential=False)

        retry_sync_operation(mock_fn, config=config)

        assert sleeps(no_sleep) == [0.5, 0.5]

    def test_max_delay_cap(self, no_sleep):
        mock_fn = MagicMock(side_effect=[OSError()] * 4 + ["ok"])
        config = RetryConfig(max_attempts=5, base_delay=2.0, max_delay=5.0)

        retry_sync_operation(mock_fn, config=config)

        assert sleeps(no_sleep) == [2.0, 4.0, 5.0, 5.0]

    def test_no_sleep_after_last_attempt(self, no_sleep):
        mock_fn = MagicMock(side_effect=OSError("down"))

        with pytest.raises(OSError):
            retry_sync_operation(mock_fn, config=RetryConfig(max_attempts=2))

        assert no_sleep.call_count == 1

    def test_specific_exceptions(self):
        """Only the listed exception types are retried."""
        mock_fn = MagicMock(side_effect=ValueError("not retryable"))
        config = RetryConfig(retryable_exceptions=(OSError,))

        with pytest.raises(ValueError):
            retry_sync_operation(mock_fn, config=config)

        assert mock_fn.call_count == 1

    def test_on_retry_callback(self):
        callback = MagicMock()
        error = ConnectionError("flaky")
        mock_fn = MagicMock(side_effect=[error, "ok"])

        retry_sync_operation(
            mock_fn, config=RetryConfig(max_attempts=2), on_retry=callback
        )

        callback.assert_called_once_with(error, 1)


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_run(self):
        config = RetryConfig(max_attempts=2, base_delay=0.01)
        mock_fn = MagicMock(side_effect=[ChainReadError("x"), "ok"])

        assert config.run(mock_fn, "arg", operation_name="read") == "ok"
        assert mock_fn.call_count == 2
        mock_fn.assert_called_with("arg")


class TestPreConfiguredConfigs:
    """Tests for the shared retry configs."""

    def test_rpc_retry_config(self):
        assert RPC_RETRY_CONFIG.max_attempts == 3
        assert RPC_RETRY_CONFIG.base_delay == 1.0
        assert RPC_RETRY_CONFIG.max_delay == 10.0

    def test_http_retry_config_retries_transport_errors(self):
        mock_fn = MagicMock(side_effect=[httpx.ConnectError("refused"), "ok"])

        assert HTTP_RETRY_CONFIG.run(mock_fn) == "ok"

    def test_http_retry_config_skips_status_errors(self):
        mock_fn = MagicMock(side_effect=ValueError("bad json"))

        with pytest.raises(ValueError):
            HTTP_RETRY_CONFIG.run(mock_fn)

        assert mock_fn.call_count == 1
