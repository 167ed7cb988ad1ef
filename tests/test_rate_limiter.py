"""Sliding-window burst limiter tests (fake clock)."""

import pytest

from mockjson.services.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_allows_up_to_limit_then_rejects():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=3, window_seconds=10, clock=clock)

    assert [limiter.allow("1.2.3.4") for _ in range(4)] == [True, True, True, False]


def test_keys_are_independent():
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=10, clock=FakeClock())

    assert limiter.allow("a") is True
    assert limiter.allow("b") is True
    assert limiter.allow("a") is False


def test_window_slides():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=10, clock=clock)
    limiter.allow("k")
    clock.now += 5
    limiter.allow("k")
    assert limiter.allow("k") is False

    # First hit leaves the window, second is still inside
    clock.now += 5
    assert limiter.allow("k") is True
    assert limiter.allow("k") is False


def test_rejected_hits_do_not_extend_the_window():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=10, clock=clock)
    limiter.allow("k")
    for _ in range(5):
        clock.now += 1
        assert limiter.allow("k") is False

    clock.now += 5
    assert limiter.allow("k") is True


def test_retry_after():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=10, clock=clock)
    assert limiter.retry_after("k") == 0.0

    limiter.allow("k")
    clock.now += 4
    assert limiter.retry_after("k") == pytest.approx(6.0)


def test_reset_clears_all_keys():
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=10, clock=FakeClock())
    limiter.allow("k")
    limiter.reset()
    assert limiter.allow("k") is True


@pytest.mark.parametrize("limit, window", [(0, 10), (1, 0)])
def test_rejects_invalid_configuration(limit, window):
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(limit=limit, window_seconds=window)


def test_idle_keys_are_dropped():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=5, window_seconds=1, clock=clock)
    for index in range(10_000):
        limiter.allow(f"10.0.{index // 256}.{index % 256}")
    assert limiter.tracked_keys() == 10_000

    clock.now += 100
    limiter.allow("192.168.1.1")

    assert limiter.tracked_keys() == 1


def test_expired_key_is_dropped_on_access():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=10, clock=clock)
    limiter.allow("k")

    clock.now += 11
    assert limiter.retry_after("k") == 0.0
    assert limiter.tracked_keys() == 0


def test_active_keys_survive_a_sweep():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=10, clock=clock)
    limiter.allow("idle")
    clock.now += 6
    limiter.allow("busy")
    limiter.allow("busy")

    clock.now += 5
    assert limiter.allow("other") is True

    assert limiter.tracked_keys() == 2
    assert limiter.allow("busy") is False
