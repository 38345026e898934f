"""Tests for rate limiting."""

import random

import pytest
from starlette.requests import Request

from rsvp.app.middleware.rate_limit import (
    RATE_LIMIT_CONFIGS,
    FixedWindowRateLimiter,
    RateLimitConfig,
    RateLimitResult,
    SlidingWindowRateLimiter,
    get_client_id,
    get_client_key,
    rate_limit_headers,
)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _request(headers=None, client=("203.0.113.9", 1234)) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "headers": raw, "client": client})


class TestRateLimitConfig:
    def test_endpoint_policies(self):
        assert RATE_LIMIT_CONFIGS["rsvp"] == RateLimitConfig(window_seconds=900, max_requests=3)
        assert RATE_LIMIT_CONFIGS["rsvp_read"] == RateLimitConfig(window_seconds=60, max_requests=120)
        assert RATE_LIMIT_CONFIGS["guest_search"] == RateLimitConfig(window_seconds=60, max_requests=30)
        assert RATE_LIMIT_CONFIGS["post_operations"] == RateLimitConfig(window_seconds=3600, max_requests=5)

    @pytest.mark.parametrize(("window", "limit"), [(0, 1), (-1, 1), (10, 0)])
    def test_rejects_invalid_config(self, window, limit):
        with pytest.raises(ValueError):
            RateLimitConfig(window_seconds=window, max_requests=limit)


class TestFixedWindowRateLimiter:
    """Tests for the fixed-window counter store."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def limiter(self, clock):
        return FixedWindowRateLimiter(clock=clock)

    @pytest.fixture
    def config(self):
        return RateLimitConfig(window_seconds=60, max_requests=3)

    def test_allows_up_to_limit_then_denies(self, limiter, config):
        remaining = [limiter.check("client", config).remaining for _ in range(3)]
        assert remaining == [2, 1, 0]

        denied = limiter.check("client", config)
        assert denied.allowed is False
        assert denied.remaining == 0
        assert denied.retry_after is not None and denied.retry_after > 0

    def test_retry_after_counts_down(self, limiter, config, clock):
        for _ in range(3):
            limiter.check("client", config)
        clock.advance(45.5)
        assert limiter.check("client", config).retry_after == 15

    def test_new_window_after_expiry(self, limiter, config, clock):
        first = limiter.check("client", config)
        for _ in range(2):
            limiter.check("client", config)
        assert not limiter.check("client", config).allowed

        clock.advance(60.001)
        result = limiter.check("client", config)
        assert result.allowed
        assert result.remaining == 2
        assert result.reset_at > first.reset_at

    def test_window_boundary_is_inclusive(self, limiter, config, clock):
        for _ in range(3):
            limiter.check("client", config)
        clock.advance(60)
        # now == window_reset_at is still inside the window
        assert not limiter.check("client", config).allowed

    def test_clients_are_independent(self, limiter, config):
        for _ in range(3):
            limiter.check("a", config)
        assert not limiter.check("a", config).allowed
        assert limiter.check("b", config).allowed

    def test_configs_do_not_share_counters(self, limiter, config):
        other = RateLimitConfig(window_seconds=60, max_requests=5)
        for _ in range(3):
            limiter.check("client", config)
        assert not limiter.check("client", config).allowed
        assert limiter.check("client", other).allowed

    def test_denied_requests_do_not_extend_window(self, limiter, config, clock):
        reset_at = limiter.check("client", config).reset_at
        for _ in range(5):
            clock.advance(1)
            result = limiter.check("client", config)
        assert result.reset_at == reset_at

    def test_sweep_removes_expired_records(self, limiter, config, clock):
        limiter.check("old", config)
        clock.advance(30)
        limiter.check("new", config)
        clock.advance(31)

        assert len(limiter) == 2
        assert limiter.sweep() == 1
        assert len(limiter) == 1

    def test_probabilistic_sweep(self, clock, config):
        limiter = FixedWindowRateLimiter(clock=clock, sweep_probability=1.0, rng=random.Random(0))
        limiter.check("old", config)
        clock.advance(120)
        limiter.check("new", config)
        assert len(limiter) == 1

    def test_reset(self, limiter, config):
        limiter.check("client", config)
        limiter.reset()
        assert len(limiter) == 0

    def test_reset_time_is_whole_seconds(self, limiter, config, clock):
        clock.now = 1000.25
        result = limiter.check("client", config)
        assert result.reset_at == 1060.25
        assert result.reset_time == 1061


class TestSlidingWindowRateLimiter:
    """Tests for the sliding-window limiter."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def limiter(self, clock):
        return SlidingWindowRateLimiter(window_seconds=10, max_requests=3, clock=clock)

    def test_allows_under_limit(self, limiter):
        assert limiter.is_allowed("c")
        assert limiter.get_remaining("c") == 2

    def test_blocks_over_limit(self, limiter):
        for _ in range(3):
            assert limiter.is_allowed("c")
        result = limiter.check("c")
        assert not result.allowed
        assert result.retry_after == 10

    def test_no_boundary_burst(self, limiter, clock):
        limiter.check("c")
        clock.advance(9)
        limiter.check("c")
        limiter.check("c")
        clock.advance(2)
        # only the first request has left the window
        assert limiter.check("c").allowed
        assert not limiter.check("c").allowed

    def test_remaining_for_unknown_client(self, limiter):
        assert limiter.get_remaining("nobody") == 3

    def test_sweep_drops_idle_clients(self, limiter, clock):
        limiter.check("a")
        clock.advance(5)
        limiter.check("b")
        clock.advance(6)
        assert limiter.sweep() == 1
        assert len(limiter) == 1


class TestClientIdentity:
    def test_forwarded_for_first_hop(self):
        request = _request({"X-Forwarded-For": "198.51.100.1, 10.0.0.1"})
        assert get_client_id(request) == "198.51.100.1"

    def test_cloudflare_then_real_ip(self):
        assert get_client_id(_request({"CF-Connecting-IP": "198.51.100.2"})) == "198.51.100.2"
        assert get_client_id(_request({"X-Real-IP": "198.51.100.3"})) == "198.51.100.3"

    def test_peer_address_fallback(self):
        assert get_client_id(_request()) == "203.0.113.9"

    def test_unknown_without_any_source(self):
        assert get_client_id(_request(client=None)) == "unknown"

    def test_client_key_is_hashed(self):
        key = get_client_key(_request({"X-Forwarded-For": "198.51.100.1"}))
        assert key.startswith("ratelimit:ip:")
        assert "198.51.100.1" not in key
        assert len(key.split(":")[-1]) == 32


class TestRateLimitHeaders:
    def test_allowed_headers(self):
        result = RateLimitResult(allowed=True, limit=3, remaining=2, reset_at=100.2)
        assert rate_limit_headers(result) == {
            "X-RateLimit-Limit": "3",
            "X-RateLimit-Remaining": "2",
            "X-RateLimit-Reset": "101",
        }

    def test_denied_headers_include_retry_after(self):
        result = RateLimitResult(allowed=False, limit=3, remaining=0, reset_at=100, retry_after=42)
        headers = rate_limit_headers(result)
        assert headers["Retry-After"] == "42"
        assert headers["X-RateLimit-Remaining"] == "0"
