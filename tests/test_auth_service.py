from datetime import timedelta

import pytest
from flask_jwt_extended import decode_token

from claimkin.services import auth_service
from claimkin.utils.crypto import hash_value
from claimkin.utils.timezone import now_utc
from conftest import make_admin


@pytest.fixture()
def otp_table(monkeypatch):
    state = {"requests": [], "sent": [], "admins": {}, "logins": []}

    def insert_otp(email, otp_hash, expires_at, ip_hash):
        state["requests"].append(
            {
                "id": len(state["requests"]) + 1,
                "email": email,
                "otp_hash": otp_hash,
                "expires_at": expires_at,
                "ip_hash": ip_hash,
                "attempts": 0,
                "max_attempts": 5,
                "used": False,
            }
        )

    def count_requests_since(since, email=None, ip_hash=None):
        return sum(
            1
            for r in state["requests"]
            if (email is None or r["email"] == email) and (ip_hash is None or r["ip_hash"] == ip_hash)
        )

    def latest_unused_otp(email):
        open_ = [r for r in state["requests"] if r["email"] == email and not r["used"]]
        return open_[-1] if open_ else None

    def increment_attempts(otp_id):
        state["requests"][otp_id - 1]["attempts"] += 1

    def mark_used(otp_id):
        state["requests"][otp_id - 1]["used"] = True

    for name, fn in {
        "insert_otp": insert_otp,
        "count_requests_since": count_requests_since,
        "latest_unused_otp": latest_unused_otp,
        "increment_attempts": increment_attempts,
        "mark_used": mark_used,
        "get_admin_by_email": lambda email: state["admins"].get(email),
        "touch_last_login": lambda admin_id: state["logins"].append(admin_id),
        "send_message": lambda to, message: state["sent"].append((to, message)),
    }.items():
        monkeypatch.setattr(auth_service, name, fn)

    admin = make_admin("admin", email="kin@example.com")
    state["admins"][admin["email"]] = admin
    state["admin"] = admin
    return state


def _code_from(state):
    text = state["sent"][-1][1]["body_text"]
    return text.split("code is: ")[1].split()[0]


def test_unknown_email_looks_like_success(otp_table):
    assert auth_service.request_otp("ghost@example.com", "1.1.1.1") == (200, {"ok": True})
    assert otp_table["sent"] == []


def test_inactive_admin_gets_no_code(otp_table):
    otp_table["admin"]["is_active"] = False
    assert auth_service.request_otp("kin@example.com", "1.1.1.1")[0] == 200
    assert otp_table["sent"] == []


def test_bad_email_is_rejected(otp_table):
    assert auth_service.request_otp("not-an-email", "1.1.1.1")[0] == 400
    assert auth_service.request_otp(None, "1.1.1.1")[0] == 400


def test_otp_stored_hashed_and_email_throttled(otp_table):
    for _ in range(3):
        assert auth_service.request_otp(" KIN@example.com ", "1.1.1.1")[0] == 200
    code = _code_from(otp_table)
    assert otp_table["requests"][-1]["otp_hash"] == hash_value(code)
    assert code not in str(otp_table["requests"])
    status, payload = auth_service.request_otp("kin@example.com", "1.1.1.1")
    assert status == 429


def test_login_returns_tokens(app, otp_table):
    auth_service.request_otp("kin@example.com", "1.1.1.1")
    code = _code_from(otp_table)
    with app.app_context():
        status, payload = auth_service.verify_otp("kin@example.com", code)
        assert status == 200
        assert payload["admin"]["email"] == "kin@example.com"
        access = decode_token(payload["access_token"])
        refresh = decode_token(payload["refresh_token"])
    assert access["sub"] == otp_table["admin"]["id"]
    assert access["role"] == "admin"
    assert refresh["type"] == "refresh"
    assert otp_table["logins"] == [otp_table["admin"]["id"]]

    # single use
    assert auth_service.verify_otp("kin@example.com", code)[0] == 401


def test_wrong_code_counts_attempts(otp_table):
    auth_service.request_otp("kin@example.com", "1.1.1.1")
    req = otp_table["requests"][-1]
    assert auth_service.verify_otp("kin@example.com", "000000") == (401, {"error": "Invalid OTP"})
    assert req["attempts"] == 1
    req["attempts"] = req["max_attempts"]
    assert auth_service.verify_otp("kin@example.com", _code_from(otp_table)) == (
        401,
        {"error": "Too many failed attempts"},
    )


def test_expired_code(otp_table):
    auth_service.request_otp("kin@example.com", "1.1.1.1")
    otp_table["requests"][-1]["expires_at"] = now_utc() - timedelta(seconds=1)
    assert auth_service.verify_otp("kin@example.com", _code_from(otp_table)) == (
        401,
        {"error": "OTP has expired"},
    )


def test_verify_requires_both_fields(otp_table):
    assert auth_service.verify_otp("kin@example.com", "")[0] == 400
