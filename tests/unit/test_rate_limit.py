"""Tests for rate limiting utilities."""

from __future__ import annotations

from unittest.mock import patch

from dex_operator.utils import rate_limit
from dex_operator.utils.rate_limit import rate_limit_k8s


class TestRateLimitK8s:
    """Test cases for Kubernetes API rate limiting."""

    def test_rate_limit_k8s_decorator(self):
        """Test that the decorated function is called."""
        call_count = 0

        @rate_limit_k8s
        def test_func():
            nonlocal call_count
            call_count += 1
            return "success"

        assert test_func() == "success"
        assert call_count == 1

    def test_rate_limit_k8s_with_args(self):
        """Test rate limiting with function arguments."""
        @rate_limit_k8s
        def test_func(a, b, c=None):
            return f"{a}-{b}-{c}"

        assert test_func("x", "y", c="z") == "x-y-z"

    @patch("dex_operator.utils.rate_limit.time.sleep")
    @patch("dex_operator.utils.rate_limit.metrics")
    def test_rapid_calls_are_spaced(self, mock_metrics, mock_sleep):
        """Test that back-to-back calls wait and count a rate limit hit."""
        with patch.object(rate_limit, "_K8S_RATE_LIMIT_PER_SECOND", 1.0):
            @rate_limit_k8s
            def test_func():
                return None

            test_func()
            test_func()

        mock_sleep.assert_called()
        assert 0 < mock_sleep.call_args[0][0] <= 1.0
        mock_metrics.rate_limit_hits_total.labels.assert_called_with(api_type="k8s")
