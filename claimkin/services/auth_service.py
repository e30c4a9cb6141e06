from __future__ import annotations
import hmac
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

from flask_jwt_extended import create_access_token, create_refresh_token

from claimkin.models.admin_otp import (
    count_requests_since,
    increment_attempts,
    insert_otp,
    latest_unused_otp,
    mark_used,
)
from claimkin.models.admin_user import get_admin_by_email, touch_last_login
from claimkin.services.email_service import admin_otp_message
from claimkin.tasks import send_message
from claimkin.utils.address import normalize_email
from claimkin.utils.crypto import generate_otp, hash_ip, hash_value

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
OTP_TTL = timedelta(minutes=10)
MAX_PER_EMAIL_PER_HOUR = 3
MAX_PER_IP_PER_HOUR = 10


def _make_tokens(admin: Dict[str, Any]) -> Dict[str, str]:
    claims = {"email": admin["email"], "role": admin["role"]}
    identity = str(admin["id"])
    return {
        "access_token": create_access_token(identity=identity, additional_claims=claims),
        "refresh_token": create_refresh_token(identity=identity, additional_claims=claims),
    }


def request_otp(email: str, ip: str) -> Tuple[int, Dict[str, Any]]:
    """
    Email a login code. Unknown and inactive addresses get the same answer
    as real ones so the endpoint cannot be used to probe for admins.
    """
    if not email or not isinstance(email, str):
        return 400, {"error": "Email is required"}
    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        return 400, {"error": "Email is required"}

    admin = get_admin_by_email(email)
    if not admin:
        logger.info("[auth] OTP request for unknown email")
        return 200, {"ok": True}
    if not admin["is_active"]:
        logger.info("[auth] OTP request for inactive admin %s", admin["id"])
        return 200, {"ok": True}

    ip_hash = hash_ip(ip)
    hour_ago = datetime.now(timezone.utc) - timedelta(hours=1)
    if count_requests_since(hour_ago, email=email) >= MAX_PER_EMAIL_PER_HOUR:
        return 429, {"error": "Too many OTP requests. Please try again later."}
    if count_requests_since(hour_ago, ip_hash=ip_hash) >= MAX_PER_IP_PER_HOUR:
        return 429, {"error": "Too many OTP requests from this IP. Please try again later."}

    otp = generate_otp()
    insert_otp(email, hash_value(otp), datetime.now(timezone.utc) + OTP_TTL, ip_hash)
    send_message(email, admin_otp_message(otp))
    logger.info("[auth] OTP sent to admin %s", admin["id"])
    return 200, {"ok": True}


def verify_otp(email: str, otp: str) -> Tuple[int, Dict[str, Any]]:
    if not email or not isinstance(email, str) or not otp or not isinstance(otp, str):
        return 400, {"error": "Email and OTP are required"}
    email = normalize_email(email)

    req = latest_unused_otp(email)
    if not req:
        return 401, {"error": "Invalid or expired OTP"}
    if req["expires_at"] < datetime.now(timezone.utc):
        return 401, {"error": "OTP has expired"}
    if req["attempts"] >= req["max_attempts"]:
        return 401, {"error": "Too many failed attempts"}
    if not hmac.compare_digest(req["otp_hash"], hash_value(otp.strip())):
        increment_attempts(req["id"])
        return 401, {"error": "Invalid OTP"}

    mark_used(req["id"])

    admin = get_admin_by_email(email)
    if not admin:
        return 401, {"error": "User not found"}
    if not admin["is_active"]:
        return 403, {"error": "Account is inactive"}

    touch_last_login(admin["id"])
    logger.info("[auth] admin logged in: %s (%s)", admin["id"], admin["role"])
    return 200, {
        "ok": True,
        "admin": {
            "id": admin["id"],
            "email": admin["email"],
            "name": admin.get("name"),
            "role": admin["role"],
        },
        **_make_tokens(admin),
    }


def refresh_tokens(admin: Dict[str, Any]) -> Dict[str, str]:
    claims = {"email": admin["email"], "role": admin["role"]}
    return {
        "access_token": create_access_token(
            identity=str(admin["id"]), additional_claims=claims
        )
    }
