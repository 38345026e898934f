"""Tests for the periodic sweeper."""

import asyncio

import pytest

from rsvp.app.core.sweeper import PeriodicSweeper
from rsvp.app.middleware.csrf import CSRFProtector
from rsvp.app.middleware.rate_limit import FixedWindowRateLimiter, RateLimitConfig


class CountingStore:
    def __init__(self, removed_per_sweep: int = 1):
        self.calls = 0
        self.removed_per_sweep = removed_per_sweep

    def sweep(self) -> int:
        self.calls += 1
        return self.removed_per_sweep


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        PeriodicSweeper("bad", CountingStore().sweep, interval=0)


def test_run_once_returns_removed_count():
    store = CountingStore(removed_per_sweep=3)
    sweeper = PeriodicSweeper("store", store.sweep, interval=60)
    assert sweeper.run_once() == 3
    assert store.calls == 1


@pytest.mark.asyncio
async def test_runs_on_interval_until_stopped():
    store = CountingStore()
    sweeper = PeriodicSweeper("store", store.sweep, interval=0.01)

    await sweeper.start()
    assert sweeper.running
    await asyncio.sleep(0.1)
    await sweeper.stop()

    assert not sweeper.running
    calls = store.calls
    assert calls >= 2

    await asyncio.sleep(0.05)
    assert store.calls == calls


@pytest.mark.asyncio
async def test_start_is_idempotent():
    store = CountingStore()
    sweeper = PeriodicSweeper("store", store.sweep, interval=10)
    await sweeper.start()
    task = sweeper._task
    await sweeper.start()
    assert sweeper._task is task
    await sweeper.stop()


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    sweeper = PeriodicSweeper("store", CountingStore().sweep, interval=10)
    await sweeper.stop()
    assert not sweeper.running


@pytest.mark.asyncio
async def test_callback_errors_do_not_kill_the_loop():
    calls = []

    def flaky() -> int:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        return 0

    sweeper = PeriodicSweeper("flaky", flaky, interval=0.01)
    await sweeper.start()
    await asyncio.sleep(0.1)
    await sweeper.stop()

    assert len(calls) >= 2


class ManualClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_csrf_protector_sweeps_expired_tokens_while_started():
    clock = ManualClock()
    protector = CSRFProtector(clock=clock, ttl_seconds=60, sweep_interval_seconds=0.01)
    protector.generate_token()
    assert len(protector) == 1

    clock.now += 61
    await protector.start()
    await asyncio.sleep(0.1)
    await protector.stop()

    assert len(protector) == 0


@pytest.mark.asyncio
async def test_rate_limiter_sweeps_expired_records_while_started():
    clock = ManualClock()
    limiter = FixedWindowRateLimiter(clock=clock, sweep_interval_seconds=0.01)
    limiter.check("client", RateLimitConfig(window_seconds=60, max_requests=5))
    assert len(limiter) == 1

    clock.now += 61
    await limiter.start()
    await asyncio.sleep(0.1)
    await limiter.stop()

    assert len(limiter) == 0


@pytest.mark.asyncio
async def test_store_stop_without_start_is_noop():
    await CSRFProtector().stop()
    await FixedWindowRateLimiter().stop()
