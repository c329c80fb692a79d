"""Unit tests for topology_engine.retry."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from topology_engine.config import Settings
from topology_engine.errors import OverloadError, StateStoreError
from topology_engine.retry import RetryConfig, _compute_delay, retry_with_backoff

# ---------------------------------------------------------------------------
# RetryConfig
# ---------------------------------------------------------------------------


class TestRetryConfig:
    def test_default_values(self):
        config = RetryConfig()
        assert config.max_retries == 3
        assert config.base_delay == 2.0
        assert config.max_delay == 60.0
        assert config.jitter is True

    def test_from_settings(self):
        config = RetryConfig.from_settings(Settings(max_retries=5, retry_backoff_base=0.5, retry_max_delay=9.0))
        assert config.max_retries == 5
        assert config.base_delay == 0.5
        assert config.max_delay == 9.0


# ---------------------------------------------------------------------------
# _compute_delay
# ---------------------------------------------------------------------------


class TestComputeDelay:
    def test_exponential_growth_no_jitter(self):
        config = RetryConfig(base_delay=1.0, max_delay=100.0, jitter=False)
        assert [_compute_delay(n, config) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_max_delay_cap(self):
        config = RetryConfig(base_delay=1.0, max_delay=5.0, jitter=False)
        assert _compute_delay(10, config) == 5.0

    def test_jitter_stays_within_bounds(self):
        config = RetryConfig(base_delay=10.0, max_delay=100.0, jitter=True)
        for _ in range(50):
            assert 5.0 <= _compute_delay(0, config) <= 15.0


# ---------------------------------------------------------------------------
# retry_with_backoff
# ---------------------------------------------------------------------------


class TestRetryWithBackoff:
    def test_succeeds_first_try(self):
        fn = MagicMock(return_value=42)
        assert retry_with_backoff(fn, RetryConfig(jitter=False)) == 42
        assert fn.call_count == 1

    @patch("topology_engine.retry.time.sleep")
    def test_overload_is_retried(self, mock_sleep: MagicMock):
        fn = MagicMock(side_effect=[OverloadError("busy"), OverloadError("busy"), "ok"])
        result = retry_with_backoff(fn, RetryConfig(max_retries=3, base_delay=0.01, jitter=False))
        assert result == "ok"
        assert fn.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("topology_engine.retry.time.sleep")
    def test_bounded_attempts(self, mock_sleep: MagicMock):
        fn = MagicMock(side_effect=OverloadError("always busy"))
        with pytest.raises(OverloadError, match="always busy"):
            retry_with_backoff(fn, RetryConfig(max_retries=2, base_delay=0.01, jitter=False))
        # 1 initial call + 2 retries.
        assert fn.call_count == 3

    @patch("topology_engine.retry.time.sleep")
    def test_other_transient_errors_not_retried(self, mock_sleep: MagicMock):
        fn = MagicMock(side_effect=StateStoreError("unreachable"))
        with pytest.raises(StateStoreError):
            retry_with_backoff(fn, RetryConfig(max_retries=3, base_delay=0.01, jitter=False))
        assert fn.call_count == 1
        mock_sleep.assert_not_called()

    @patch("topology_engine.retry.time.sleep")
    def test_zero_retries_fails_immediately(self, mock_sleep: MagicMock):
        fn = MagicMock(side_effect=OverloadError("busy"))
        with pytest.raises(OverloadError):
            retry_with_backoff(fn, RetryConfig(max_retries=0))
        assert fn.call_count == 1
        mock_sleep.assert_not_called()
