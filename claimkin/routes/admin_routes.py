from flask import Blueprint, Response, g, jsonify, request

from claimkin.services import export_service, import_service, settings_service, user_service
from claimkin.utils.authz import require_admin
from claimkin.utils.opengraph import fetch_open_graph, is_valid_url
from claimkin.utils.request_info import json_body

admin_bp = Blueprint("admin", __name__)


# addresses


@admin_bp.post("/addresses/import")
@require_admin()
def import_addresses():
    upload = request.files.get("file")
    text = None
    if upload is not None:
        text = upload.read().decode("utf-8-sig", errors="replace")
    status, payload = import_service.import_addresses(g.admin, request.form, text)
    return jsonify(payload), status


@admin_bp.get("/addresses/export")
@require_admin()
def export_addresses():
    status, error, result = export_service.export_all(g.admin, request.args)
    if error:
        return jsonify(error), status
    body, filename = result
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# users


@admin_bp.get("/users")
@require_admin()
def users():
    status, payload = user_service.list_users(g.admin)
    return jsonify(payload), status


@admin_bp.post("/users")
@require_admin()
def invite_user():
    status, payload = user_service.invite_user(g.admin, json_body())
    return jsonify(payload), status


@admin_bp.patch("/users/<user_id>")
@require_admin()
def update_user(user_id):
    status, payload = user_service.update_user(
        g.admin, user_id, json_body()
    )
    return jsonify(payload), status


@admin_bp.delete("/users/<user_id>")
@require_admin()
def delete_user(user_id):
    status, payload = user_service.delete_user(g.admin, user_id)
    return jsonify(payload), status


# profile


@admin_bp.get("/profile")
@require_admin()
def profile():
    status, payload = user_service.get_profile(g.admin)
    return jsonify(payload), status


@admin_bp.put("/profile")
@require_admin()
def save_profile():
    status, payload = user_service.save_profile(g.admin, json_body())
    return jsonify(payload), status


# settings


@admin_bp.get("/global-settings")
@require_admin()
def global_settings():
    return jsonify({"settings": settings_service.all_settings()}), 200


@admin_bp.put("/global-settings")
@require_admin("super_admin", "admin")
def save_global_settings():
    status, payload = settings_service.save_settings(g.admin, request.get_json(silent=True))
    return jsonify(payload), status


@admin_bp.get("/leaderboard")
@require_admin()
def leaderboard():
    return jsonify(settings_service.admin_leaderboard()), 200


@admin_bp.get("/opengraph")
@require_admin()
def opengraph():
    url = (request.args.get("url") or "").strip()
    if not url:
        return jsonify({"error": "URL parameter required"}), 400
    if not is_valid_url(url):
        return jsonify({"error": "Invalid URL"}), 400
    return jsonify({"data": fetch_open_graph(url)}), 200
