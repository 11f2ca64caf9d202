"""Security — owner allow-list and command rate limiting."""

import pytest

from security.auth import AllowListVerifier
from security.rate_limiter import RateLimiter
from utils.errors import UnauthorizedError


def test_empty_allow_list_accepts_everyone():
    verifier = AllowListVerifier([])
    verifier.require_auth("anyone")
    assert verifier.is_allowed("12345")


def test_allow_list_rejects_unknown_principal():
    verifier = AllowListVerifier(["111", "222"])
    verifier.require_auth("111")
    with pytest.raises(UnauthorizedError) as exc:
        verifier.require_auth("333")
    assert exc.value.caller == "333"


def test_allow_list_compares_as_strings():
    assert AllowListVerifier([111]).is_allowed("111")


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_rate_limiter_blocks_over_limit():
    limiter = RateLimiter(max_requests=2, window_seconds=60, clock=_Clock())
    assert limiter.allow("u1")
    assert limiter.allow("u1")
    assert not limiter.allow("u1")
    assert limiter.allow("u2")


def test_rate_limiter_window_slides():
    clock = _Clock()
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
    assert limiter.allow("u1")
    clock.now = 30
    assert not limiter.allow("u1")
    clock.now = 61
    assert limiter.allow("u1")


def test_rate_limiter_forgets_idle_keys():
    clock = _Clock()
    limiter = RateLimiter(max_requests=5, window_seconds=60, clock=clock)
    for user in ("u1", "u2", "u3"):
        limiter.allow(user)
    clock.now = 120
    limiter.allow("u4")
    assert list(limiter._hits) == ["u4"]
