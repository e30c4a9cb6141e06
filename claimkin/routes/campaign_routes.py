from flask import Blueprint, Response, g, jsonify, request

from claimkin.models.campaign import get_campaign
from claimkin.services import campaign_service, export_service, version_service
from claimkin.utils.authz import require_admin
from claimkin.utils.permissions import get_campaign_access
from claimkin.utils.request_info import json_body

campaigns = Blueprint("campaigns", __name__)


def load_campaign(campaign_id):
    """Returns (campaign, None) or (None, error_response)."""
    campaign = get_campaign(campaign_id)
    if not campaign:
        return None, (jsonify({"error": "Campaign not found"}), 404)
    return campaign, None


def load_editable_campaign(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return None, err
    if not get_campaign_access(g.admin, campaign)["can_edit"]:
        return None, (jsonify({"error": "You do not have permission to edit this campaign"}), 403)
    return campaign, None


@campaigns.get("")
@require_admin()
def list_campaigns():
    owner = request.args.get("owner", "all")
    include_hidden = request.args.get("include_hidden") in ("1", "true")
    rows = campaign_service.list_for_admin(g.admin, owner, include_hidden)
    return jsonify({"campaigns": rows}), 200


@campaigns.post("")
@require_admin()
def create_campaign():
    status, payload = campaign_service.create(g.admin, json_body())
    return jsonify(payload), status


@campaigns.get("/<campaign_id>")
@require_admin()
def campaign_detail(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    return jsonify(campaign_service.detail(g.admin, campaign)), 200


@campaigns.put("/<campaign_id>")
@require_admin()
def update_campaign(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = campaign_service.update(g.admin, campaign, json_body())
    return jsonify(payload), status


@campaigns.delete("/<campaign_id>")
@require_admin()
def delete_campaign(campaign_id):
    status, payload = campaign_service.remove(g.admin, campaign_id)
    return jsonify(payload), status


@campaigns.post("/<campaign_id>/favorite")
@require_admin()
def toggle_favorite(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    return jsonify(campaign_service.toggle_flag(campaign, "is_favorited")), 200


@campaigns.post("/<campaign_id>/hide")
@require_admin("super_admin")
def toggle_hidden(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    return jsonify(campaign_service.toggle_flag(campaign, "is_hidden")), 200


@campaigns.post("/<campaign_id>/leaderboard")
@require_admin("super_admin")
def toggle_leaderboard(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    return jsonify(campaign_service.toggle_flag(campaign, "show_in_leaderboard")), 200


# versions


@campaigns.get("/<campaign_id>/versions")
@require_admin()
def versions(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    return jsonify(version_service.history(campaign)), 200


@campaigns.post("/<campaign_id>/publish-draft")
@require_admin()
def publish_draft(campaign_id):
    campaign, err = load_editable_campaign(campaign_id)
    if err:
        return err
    status, payload = version_service.publish_draft(campaign, g.admin["id"])
    return jsonify(payload), status


@campaigns.post("/<campaign_id>/discard-draft")
@require_admin()
def discard_draft(campaign_id):
    campaign, err = load_editable_campaign(campaign_id)
    if err:
        return err
    status, payload = version_service.discard_draft(campaign, g.admin["id"])
    return jsonify(payload), status


@campaigns.post("/<campaign_id>/revert")
@require_admin()
def revert(campaign_id):
    campaign, err = load_editable_campaign(campaign_id)
    if err:
        return err
    data = json_body()
    status, payload = version_service.revert(campaign, data.get("version_number"), g.admin["id"])
    return jsonify(payload), status


@campaigns.get("/<campaign_id>/export")
@require_admin()
def export_claims(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, error, result = export_service.export_campaign(g.admin, campaign)
    if error:
        return jsonify(error), status
    body, filename = result
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
