from flask import Blueprint, Response, g, jsonify
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from claimkin.utils.authz import require_admin

core = Blueprint("core", __name__)


@core.get("/__ping")
def ping():
    return jsonify({"ok": True, "service": "claimkin-api"}), 200


@core.get("/api/admin/me")
@require_admin()
def me():
    return jsonify({"admin": g.admin}), 200


@core.get("/admin/metrics")
@require_admin()
def metrics():
    """Prometheus metrics endpoint. Requires an admin JWT."""
    return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)
