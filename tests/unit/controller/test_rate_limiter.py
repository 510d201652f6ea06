"""
Tests unitaires pour ItemExponentialRateLimiter.
"""

import pytest

from src.controller import ItemExponentialRateLimiter


class TestItemExponentialRateLimiter:
    """Backoff exponentiel par item."""

    def test_delay_doubles_per_failure(self) -> None:
        limiter = ItemExponentialRateLimiter(base_delay=1.0, max_delay=100.0)

        assert [limiter.when("a") for _ in range(4)] == [1.0, 2.0, 4.0, 8.0]
        assert limiter.num_requeues("a") == 4

    def test_delay_capped(self) -> None:
        limiter = ItemExponentialRateLimiter(base_delay=1.0, max_delay=5.0)

        delays = [limiter.when("a") for _ in range(5)]

        assert delays == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_items_are_independent(self) -> None:
        limiter = ItemExponentialRateLimiter(base_delay=1.0, max_delay=100.0)
        limiter.when("a")
        limiter.when("a")

        assert limiter.when("b") == 1.0
        assert limiter.num_requeues("a") == 2

    def test_forget_resets_backoff(self) -> None:
        limiter = ItemExponentialRateLimiter(base_delay=1.0, max_delay=100.0)
        limiter.when("a")
        limiter.when("a")

        limiter.forget("a")

        assert limiter.num_requeues("a") == 0
        assert limiter.when("a") == 1.0

    def test_long_failure_series_stays_at_max(self) -> None:
        limiter = ItemExponentialRateLimiter()
        for _ in range(100):
            delay = limiter.when("a")

        assert delay == ItemExponentialRateLimiter.DEFAULT_MAX_DELAY

    @pytest.mark.parametrize("base,maximum", [(0, 1.0), (-1.0, 1.0), (2.0, 1.0)])
    def test_invalid_bounds(self, base: float, maximum: float) -> None:
        with pytest.raises(ValueError):
            ItemExponentialRateLimiter(base_delay=base, max_delay=maximum)
