import pytest

from claimkin.services import auth_service
from claimkin.utils import rate_limit


@pytest.fixture()
def limiter(monkeypatch):
    rate_limit.reset()
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "1")
    yield
    rate_limit.reset()


def test_is_rate_limited_counts_per_key(limiter):
    assert not rate_limit.is_rate_limited("a", 2)
    assert not rate_limit.is_rate_limited("a", 2)
    assert rate_limit.is_rate_limited("a", 2)
    assert not rate_limit.is_rate_limited("b", 2)
    assert not rate_limit.is_rate_limited("c", 0)


def test_auth_routes_are_throttled(client, monkeypatch, limiter):
    monkeypatch.setenv("RATE_LIMIT_AUTH_PER_MINUTE", "2")
    monkeypatch.setattr(auth_service, "get_admin_by_email", lambda email: None)
    codes = [
        client.post("/api/admin/auth/request-otp", json={"email": "x@example.com"}).status_code
        for _ in range(3)
    ]
    assert codes == [200, 200, 429]
    assert client.post("/api/admin/auth/request-otp", json={}).get_json()["retry_after"] == 60
