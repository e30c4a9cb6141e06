from __future__ import annotations
import logging
import os
from typing import Any, Dict, Tuple

from psycopg2.errors import UniqueViolation

from claimkin.models.admin_user import (
    count_campaigns_created_by,
    create_admin_user,
    delete_admin_user,
    get_admin_by_email,
    get_admin_user,
    list_admin_users,
    update_admin_user,
    update_profile,
)
from claimkin.services.email_service import admin_invite_message
from claimkin.tasks import send_message
from claimkin.utils.permissions import ADMIN_ROLES, can_manage_users
from claimkin.utils.text import clean

logger = logging.getLogger(__name__)

LINKEDIN_PREFIXES = ("https://www.linkedin.com/", "https://linkedin.com/")
FORBIDDEN = {"error": "Forbidden - You do not have permission to manage users"}


def _login_url() -> str:
    base = (os.getenv("APP_BASE_URL") or "http://localhost:3000").rstrip("/")
    return f"{base}/admin/login"


def list_users(admin: Dict[str, Any]) -> Tuple[int, Any]:
    if not can_manage_users(admin["role"]):
        return 403, FORBIDDEN
    return 200, {"users": list_admin_users()}


def invite_user(admin: Dict[str, Any], body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    if not can_manage_users(admin["role"]):
        return 403, FORBIDDEN
    email = (clean(body.get("email")) or "").lower()
    name = clean(body.get("name"))
    role = body.get("role")
    if not email or not name or not role:
        return 400, {"error": "Email, name, and role are required"}
    if role not in ADMIN_ROLES:
        return 400, {"error": "Invalid role"}
    if get_admin_by_email(email):
        return 400, {"error": "User with this email already exists"}
    try:
        user = create_admin_user(email, name, role, invited_by=admin["id"])
    except UniqueViolation:
        return 409, {"error": "User with this email already exists"}

    inviter = admin.get("name") or admin["email"]
    send_message(user["email"], admin_invite_message(inviter, _login_url(), role))
    logger.info("[auth] user %s (%s) invited by %s", user["id"], role, admin["id"])
    return 201, {"user": user}


def update_user(admin: Dict[str, Any], user_id, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    if not can_manage_users(admin["role"]):
        return 403, FORBIDDEN
    if str(user_id) == str(admin["id"]):
        return 400, {"error": "Cannot modify your own account"}
    if not get_admin_user(user_id):
        return 404, {"error": "User not found"}
    fields: Dict[str, Any] = {}
    if "role" in body:
        if body["role"] not in ADMIN_ROLES:
            return 400, {"error": "Invalid role"}
        fields["role"] = body["role"]
    if "is_active" in body:
        fields["is_active"] = bool(body["is_active"])
    if "name" in body:
        fields["name"] = clean(body["name"])
    user = update_admin_user(user_id, **fields)
    logger.info("[auth] user %s updated by %s: %s", user_id, admin["id"], sorted(fields))
    return 200, {"user": user}


def delete_user(admin: Dict[str, Any], user_id) -> Tuple[int, Dict[str, Any]]:
    if not can_manage_users(admin["role"]):
        return 403, FORBIDDEN
    if str(user_id) == str(admin["id"]):
        return 400, {"error": "Cannot delete your own account"}
    if not get_admin_user(user_id):
        return 404, {"error": "User not found"}
    if count_campaigns_created_by(user_id) > 0:
        return 400, {"error": "Cannot delete user who has created campaigns"}
    delete_admin_user(user_id)
    logger.info("[auth] user %s deleted by %s", user_id, admin["id"])
    return 200, {"success": True}


def get_profile(admin: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    profile = get_admin_user(admin["id"])
    if not profile:
        return 404, {"error": "Profile not found"}
    return 200, {"profile": profile}


def save_profile(admin: Dict[str, Any], body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    fields = {}
    for k in ("display_name", "linkedin_url", "bio", "phone"):
        if k in body:
            fields[k] = clean(body[k])
    url = fields.get("linkedin_url")
    if url and not url.startswith(LINKEDIN_PREFIXES):
        return 400, {
            "error": "LinkedIn URL must start with https://www.linkedin.com/ or https://linkedin.com/"
        }
    return 200, {"profile": update_profile(admin["id"], **fields)}
