# claimkin/__init__.py
import logging
import os
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_jwt_extended import JWTManager
from psycopg2.errors import InvalidTextRepresentation

from claimkin.realtime import init_socketio
from claimkin.routes import (
    admin_bp,
    auth_bp,
    campaign_content,
    campaigns,
    claims,
    core,
    public,
)
from claimkin.utils.cache import is_jti_revoked

load_dotenv(dotenv_path=".env")


class ClaimKinJSONProvider(DefaultJSONProvider):
    """ISO-8601 datetimes, string UUIDs and numeric Decimals."""

    @staticmethod
    def default(o):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, UUID):
            return str(o)
        if isinstance(o, Decimal):
            return float(o)
        return DefaultJSONProvider.default(o)


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def create_app():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.json = ClaimKinJSONProvider(app)
    app.url_map.strict_slashes = False
    app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024

    # JWT
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET", "dev-secret")
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = "Authorization"
    app.config["JWT_HEADER_TYPE"] = "Bearer"
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(minutes=_int_env("JWT_ACCESS_MINUTES", 60))
    app.config["JWT_REFRESH_TOKEN_EXPIRES"] = timedelta(days=_int_env("JWT_REFRESH_DAYS", 7))
    jwt = JWTManager(app)

    @jwt.token_in_blocklist_loader
    def _revoked(_header, payload):
        return is_jti_revoked(payload["jti"])

    @jwt.unauthorized_loader
    def _missing(reason):
        return jsonify({"error": "unauthorized", "detail": reason}), 401

    @jwt.invalid_token_loader
    def _invalid(reason):
        return jsonify({"error": "invalid token", "detail": reason}), 401

    @jwt.expired_token_loader
    def _expired(_header, _payload):
        return jsonify({"error": "token expired"}), 401

    @jwt.revoked_token_loader
    def _revoked_response(_header, _payload):
        return jsonify({"error": "token revoked"}), 401

    # malformed uuids in the path never match a row
    @app.errorhandler(InvalidTextRepresentation)
    def _bad_id(_e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(400)
    def _bad_request(e):
        return jsonify({"error": e.description}), 400

    @app.errorhandler(413)
    def _too_large(_e):
        return jsonify({"error": "upload too large"}), 413

    app.register_blueprint(core)
    app.register_blueprint(auth_bp, url_prefix="/api/admin/auth")
    app.register_blueprint(campaigns, url_prefix="/api/admin/campaigns")
    app.register_blueprint(campaign_content, url_prefix="/api/admin/campaigns")
    app.register_blueprint(claims)
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(public)

    logging.getLogger(__name__).debug(
        "routes: %s", sorted(str(rule) for rule in app.url_map.iter_rules())
    )

    init_socketio(app)
    return app
