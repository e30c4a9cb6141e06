from flask import Blueprint, g, jsonify, request

from claimkin.models.campaign import list_campaign_options
from claimkin.models.claim import list_answers_for_claims, list_claims
from claimkin.routes.campaign_routes import load_campaign
from claimkin.services import claim_admin_service
from claimkin.utils.authz import require_admin
from claimkin.utils.permissions import get_campaign_access
from claimkin.utils.request_info import json_body

claims = Blueprint("claims", __name__)


def _attach_answers(rows):
    by_claim = {}
    for a in list_answers_for_claims([r["id"] for r in rows]):
        by_claim.setdefault(str(a["claim_id"]), []).append(a)
    for r in rows:
        r["answers"] = by_claim.get(str(r["id"]), [])
        r["is_pre_created"] = claim_admin_service.is_pre_created(r)
    return rows


@claims.post("/api/admin/campaigns/<campaign_id>/pre-create-claim")
@require_admin()
def pre_create_claim(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    if not get_campaign_access(g.admin, campaign)["can_gift"]:
        return jsonify({"error": "You do not have permission to gift in this campaign"}), 403
    status, payload = claim_admin_service.pre_create(
        g.admin, campaign, json_body()
    )
    return jsonify(payload), status


@claims.post("/api/admin/campaigns/<campaign_id>/register")
@require_admin()
def register_claim(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    if not get_campaign_access(g.admin, campaign)["can_edit"]:
        return jsonify({"error": "You do not have permission to register claims in this campaign"}), 403
    status, payload = claim_admin_service.register(
        g.admin, campaign, json_body()
    )
    return jsonify(payload), status


@claims.get("/api/admin/claims")
@require_admin()
def list_all_claims():
    args = request.args
    rows = list_claims(
        campaign_id=args.get("campaign_id") or None,
        status=args.get("status") or None,
        shipped=args.get("shipped") or None,
        pre_created=args.get("pre_created") or None,
        include_test=args.get("include_test") in ("1", "true"),
    )
    return jsonify({"claims": _attach_answers(rows), "campaigns": list_campaign_options()}), 200


@claims.patch("/api/admin/claims/<claim_id>")
@require_admin()
def update_claim(claim_id):
    status, payload = claim_admin_service.update(
        g.admin, claim_id, json_body()
    )
    return jsonify(payload), status


@claims.delete("/api/admin/claims/<claim_id>")
@require_admin()
def delete_claim(claim_id):
    status, payload = claim_admin_service.remove(g.admin, claim_id)
    return jsonify(payload), status


@claims.post("/api/admin/claims/bulk-update")
@require_admin()
def bulk_update():
    status, payload = claim_admin_service.bulk_update(g.admin, json_body())
    return jsonify(payload), status


@claims.post("/api/admin/claims/bulk-delete")
@require_admin()
def bulk_delete():
    status, payload = claim_admin_service.bulk_delete(g.admin, json_body())
    return jsonify(payload), status
