import os
from functools import wraps
from flask import g, jsonify
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from claimkin.models.admin_user import get_admin_user


def _allowlist():
    raw = os.getenv("ADMIN_EMAIL_ALLOWLIST", "")
    return {e.strip().lower() for e in raw.split(",") if e.strip()}


def require_admin(*allowed):
    """
    Load the calling admin into g.admin. The row is re-read on every request
    so deactivation and role changes apply to tokens already issued.
    """

    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            admin = get_admin_user(get_jwt_identity())
            if admin is None:
                return jsonify({"error": "unauthorized"}), 401
            if not admin.get("is_active"):
                return jsonify({"error": "account disabled"}), 403
            allow = _allowlist()
            if allow and admin["email"].lower() not in allow:
                return jsonify({"error": "forbidden"}), 403
            if allowed and admin["role"] not in allowed:
                return (
                    jsonify(
                        {"error": "forbidden", "required": allowed, "have": admin["role"]}
                    ),
                    403,
                )
            g.admin = admin
            return fn(*args, **kwargs)

        return wrapper

    return deco
