from hypothesis import given, settings, strategies as st

from services.rate_limit import FixedWindowRateLimiter, UNKNOWN_CLIENT, client_key


def test_101st_request_in_window_is_blocked(clock):
    limiter = FixedWindowRateLimiter(limit=100, window_seconds=60, clock=clock)

    for _ in range(100):
        assert limiter.hit("1.2.3.4").allowed

    status = limiter.hit("1.2.3.4")
    assert not status.allowed
    assert status.remaining == 0
    assert status.retry_after_seconds == 60


def test_blocked_requests_do_not_extend_the_count(clock):
    limiter = FixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock)
    for _ in range(5):
        limiter.hit("a")
    clock.advance(61)
    status = limiter.hit("a")
    assert status.allowed
    assert status.remaining == 1


def test_window_reset_only_after_reset_time_has_passed(clock):
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
    assert limiter.hit("a").allowed

    clock.advance(60)
    assert not limiter.hit("a").allowed

    clock.advance(0.5)
    assert limiter.hit("a").allowed


def test_clients_have_independent_budgets(clock):
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
    assert limiter.hit("a").allowed
    assert limiter.hit("b").allowed
    assert not limiter.hit("a").allowed


def test_sweep_drops_expired_counters(clock):
    limiter = FixedWindowRateLimiter(limit=5, window_seconds=60, clock=clock, sweep_interval=300)
    for client in ("a", "b", "c"):
        limiter.hit(client)
    assert len(limiter) == 3

    clock.advance(61)
    limiter.hit("d")
    assert limiter.sweep() == 3
    assert len(limiter) == 1


def test_periodic_sweep_runs_from_hit(clock):
    limiter = FixedWindowRateLimiter(limit=5, window_seconds=60, clock=clock, sweep_interval=120)
    limiter.hit("stale")
    clock.advance(121)
    limiter.hit("fresh")
    assert len(limiter) == 1


@settings(max_examples=50)
@given(limit=st.integers(min_value=1, max_value=50), extra=st.integers(min_value=1, max_value=20))
def test_exactly_limit_requests_allowed_per_window(limit: int, extra: int):
    """
    Property: within one window the number of allowed requests is exactly the limit.
    """
    limiter = FixedWindowRateLimiter(limit=limit, window_seconds=60, clock=lambda: 0.0)
    allowed = sum(limiter.hit("client").allowed for _ in range(limit + extra))
    assert allowed == limit


def test_client_key_prefers_cloudflare_header():
    headers = {"cf-connecting-ip": "1.1.1.1", "x-forwarded-for": "2.2.2.2"}
    assert client_key(headers) == "1.1.1.1"
    assert client_key({"x-forwarded-for": "2.2.2.2"}) == "2.2.2.2"
    assert client_key({}) == UNKNOWN_CLIENT


def test_http_requests_are_limited_per_client(client, auth_headers, clock):
    headers = {**auth_headers, "cf-connecting-ip": "9.9.9.9"}
    for _ in range(100):
        assert client.get("/rest/users", headers=headers).status_code == 200

    blocked = client.get("/rest/users", headers=headers)
    assert blocked.status_code == 429
    assert blocked.json() == {"error": "Too many requests. Please try again later."}
    assert blocked.headers["Retry-After"] == "60"

    other = client.get("/rest/users", headers={**auth_headers, "cf-connecting-ip": "8.8.8.8"})
    assert other.status_code == 200

    clock.advance(61)
    assert client.get("/rest/users", headers=headers).status_code == 200


def test_headerless_clients_share_one_bucket(client, auth_headers, rate_limiter):
    rate_limiter.limit = 2
    assert client.get("/rest/users", headers=auth_headers).status_code == 200
    assert client.get("/rest/users", headers=auth_headers).status_code == 200
    assert client.get("/rest/users", headers=auth_headers).status_code == 429
