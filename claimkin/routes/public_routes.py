from flask import Blueprint, jsonify, request

from claimkin.services import claim_service, gift_service, settings_service
from claimkin.utils.rate_limit import rate_limit_decorator
from claimkin.utils.request_info import client_ip, json_body, user_agent

public = Blueprint("public", __name__)


@public.get("/api/campaigns/<slug>")
def campaign_page(slug):
    status, payload = claim_service.public_campaign(slug)
    return jsonify(payload), status


@public.post("/api/campaigns/<slug>/claim")
@rate_limit_decorator("RATE_LIMIT_PER_MINUTE", 60, key_prefix="claim")
def submit_claim(slug):
    body = json_body()
    status, payload = claim_service.submit_claim(slug, body, client_ip(), user_agent())
    return jsonify(payload), status


@public.get("/api/campaigns/<slug>/claim/<token>")
def pre_created_claim(slug, token):
    status, payload = claim_service.pre_created_prefill(slug, token)
    return jsonify(payload), status


@public.get("/api/campaigns/<slug>/gift/<code>")
def gift_code(slug, code):
    status, payload = gift_service.gifter_info(slug, code)
    return jsonify(payload), status


@public.get("/api/verify")
def verify_email():
    status, payload = claim_service.verify_email(request.args.get("token") or "")
    return jsonify(payload), status


@public.get("/api/leaderboard")
def leaderboard():
    status, payload = settings_service.public_leaderboard(request.args.get("key"))
    return jsonify(payload), status
