import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["SOCKETIO_ASYNC_MODE"] = "threading"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["DEV_EMAIL_LOG_ONLY"] = "1"
os.environ["USE_EMAIL_QUEUE"] = "0"
os.environ.pop("ADMIN_EMAIL_ALLOWLIST", None)

import time
import uuid

import pytest
from flask_jwt_extended import create_access_token, create_refresh_token

from claimkin import create_app
from claimkin.utils import cache


class FakeRedis:
    """The few redis calls the app makes, kept in a dict."""

    def __init__(self):
        self.store = {}

    def _alive(self, key):
        item = self.store.get(key)
        if item is None:
            return None
        value, expires = item
        if expires is not None and expires < time.time():
            del self.store[key]
            return None
        return value

    def get(self, key):
        return self._alive(key)

    def set(self, key, value):
        self.store[key] = (value, None)
        return True

    def setex(self, key, ttl, value):
        self.store[key] = (value, time.time() + int(ttl))
        return True

    def delete(self, *keys):
        return sum(1 for k in keys if self.store.pop(k, None) is not None)


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "_client", fake)
    return fake


@pytest.fixture()
def app():
    app = create_app()
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def make_admin(role="admin", **overrides):
    admin = {
        "id": str(uuid.uuid4()),
        "email": f"{role}@example.com",
        "name": role.replace("_", " ").title(),
        "role": role,
        "is_active": True,
        "display_name": None,
        "linkedin_url": None,
        "bio": None,
        "phone": None,
    }
    admin.update(overrides)
    return admin


def make_campaign(**overrides):
    campaign = {
        "id": str(uuid.uuid4()),
        "slug": "spring-books",
        "title": "Spring <b>Books</b>",
        "internal_title": None,
        "is_active": True,
        "starts_at": None,
        "ends_at": None,
        "capacity_total": None,
        "require_email": False,
        "require_email_verification": False,
        "require_invite_code": False,
        "show_scarcity": False,
        "test_mode": False,
        "enable_questions": False,
        "max_claims_per_email": 1,
        "max_claims_per_ip_per_day": 5,
        "max_claims_per_address": None,
        "current_version": 1,
        "has_draft": False,
        "created_by": None,
    }
    campaign.update(overrides)
    return campaign


@pytest.fixture()
def login(app, monkeypatch):
    """Return auth headers for an admin that the auth layer will load."""
    import claimkin.utils.authz as authz

    admins = {}
    monkeypatch.setattr(authz, "get_admin_user", lambda admin_id: admins.get(admin_id))

    def _login(admin, refresh=False):
        admins[admin["id"]] = admin
        with app.app_context():
            claims = {"email": admin["email"], "role": admin["role"]}
            if refresh:
                token = create_refresh_token(identity=admin["id"], additional_claims=claims)
            else:
                token = create_access_token(identity=admin["id"], additional_claims=claims)
        return {"Authorization": f"Bearer {token}"}

    return _login
