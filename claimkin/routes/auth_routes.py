import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required

from claimkin.models.admin_user import get_admin_user
from claimkin.services.auth_service import refresh_tokens, request_otp, verify_otp
from claimkin.utils.cache import revoke_jti
from claimkin.utils.rate_limit import rate_limit_decorator
from claimkin.utils.request_info import client_ip, json_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/request-otp")
@rate_limit_decorator("RATE_LIMIT_AUTH_PER_MINUTE", 10, key_prefix="auth")
def request_code():
    data = json_body()
    status, payload = request_otp(data.get("email") or "", client_ip())
    return jsonify(payload), status


@auth_bp.post("/verify-otp")
@rate_limit_decorator("RATE_LIMIT_AUTH_PER_MINUTE", 10, key_prefix="auth")
def verify_code():
    data = json_body()
    status, payload = verify_otp(data.get("email") or "", str(data.get("otp") or ""))
    return jsonify(payload), status


@auth_bp.post("/refresh")
@jwt_required(refresh=True)
def refresh():
    admin = get_admin_user(get_jwt_identity())
    if admin is None:
        return jsonify({"error": "unauthorized"}), 401
    if not admin.get("is_active"):
        return jsonify({"error": "account disabled"}), 403
    return jsonify(refresh_tokens(admin)), 200


@auth_bp.post("/logout")
@jwt_required(verify_type=False)
def logout():
    claims = get_jwt()
    ttl = int(claims["exp"] - datetime.now(timezone.utc).timestamp())
    revoke_jti(claims["jti"], ttl)
    logger.info("[auth] token revoked for %s", claims.get("sub"))
    return jsonify({"success": True}), 200
