"""Tests for the sliding-window rate limiter."""

from __future__ import annotations

import pytest

from kernelscope.core.rate_limit import RateLimiter


class FakeTime:
    """Clock whose sleep advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


class TestRateLimiter:
    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            RateLimiter(0)

    @pytest.mark.asyncio
    async def test_under_limit_does_not_wait(self, fake_time):
        limiter = RateLimiter(3, window=1.0, clock=fake_time.clock, sleep=fake_time.sleep)
        for _ in range(3):
            await limiter.acquire()
        assert fake_time.sleeps == []

    @pytest.mark.asyncio
    async def test_waits_for_oldest_slot(self, fake_time):
        limiter = RateLimiter(2, window=1.0, clock=fake_time.clock, sleep=fake_time.sleep)
        await limiter.acquire()
        fake_time.now = 0.25
        await limiter.acquire()
        await limiter.acquire()

        assert fake_time.sleeps == [0.75]
        assert fake_time.now == 1.0

    @pytest.mark.asyncio
    async def test_window_slides(self, fake_time):
        limiter = RateLimiter(1, window=1.0, clock=fake_time.clock, sleep=fake_time.sleep)
        await limiter.acquire()
        fake_time.now = 5.0
        await limiter.acquire()
        assert fake_time.sleeps == []

    @pytest.mark.asyncio
    async def test_context_manager(self, fake_time):
        limiter = RateLimiter(1, window=2.0, clock=fake_time.clock, sleep=fake_time.sleep)
        async with limiter:
            pass
        async with limiter:
            pass
        assert fake_time.sleeps == [2.0]
