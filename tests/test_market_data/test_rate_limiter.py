"""Tests for the sliding-window rate limiter."""

import pytest

from coinchat.market_data.rate_limiter import SlidingWindowRateLimiter


class TestAdmission:
    def test_admits_exactly_the_ceiling(self) -> None:
        limiter = SlidingWindowRateLimiter(10, 60)

        admitted = [limiter.try_acquire(now=100.0 + i) for i in range(10)]

        assert admitted == [True] * 10
        assert limiter.in_window(now=110.0) == 10

    def test_denies_one_past_the_ceiling(self) -> None:
        limiter = SlidingWindowRateLimiter(10, 60)
        for i in range(10):
            limiter.try_acquire(now=100.0 + i)

        assert limiter.try_acquire(now=110.0) is False
        # Denied requests are not recorded
        assert limiter.in_window(now=110.0) == 10

    def test_admit_does_not_record(self) -> None:
        limiter = SlidingWindowRateLimiter(1, 60)

        assert limiter.admit(now=0.0) is True
        assert limiter.admit(now=0.0) is True
        limiter.record(now=0.0)
        assert limiter.admit(now=0.0) is False


class TestWindow:
    def test_window_reset_after_oldest_expires(self) -> None:
        limiter = SlidingWindowRateLimiter(2, 60)
        limiter.try_acquire(now=0.0)
        limiter.try_acquire(now=30.0)

        assert limiter.try_acquire(now=59.9) is False
        # The request at t=0 leaves the window at exactly t=60
        assert limiter.try_acquire(now=60.0) is True
        assert limiter.try_acquire(now=60.0) is False

    def test_full_reset_after_a_whole_window(self) -> None:
        limiter = SlidingWindowRateLimiter(50, 60)
        for i in range(50):
            limiter.try_acquire(now=float(i))

        assert limiter.in_window(now=200.0) == 0
        assert limiter.try_acquire(now=200.0) is True

    def test_uses_injected_clock(self, clock) -> None:
        limiter = SlidingWindowRateLimiter(1, 60, clock=clock)

        assert limiter.try_acquire() is True
        assert limiter.try_acquire() is False
        clock.advance(60)
        assert limiter.try_acquire() is True


class TestConstruction:
    @pytest.mark.parametrize("ceiling", [0, -1])
    def test_rejects_non_positive_ceiling(self, ceiling: int) -> None:
        with pytest.raises(ValueError):
            SlidingWindowRateLimiter(ceiling)

    def test_exposes_ceiling(self) -> None:
        assert SlidingWindowRateLimiter(50).max_requests == 50
