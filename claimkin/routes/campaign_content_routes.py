from flask import Blueprint, g, jsonify, request

from claimkin.models.invite_code import list_invite_codes
from claimkin.models.question import list_questions
from claimkin.routes.campaign_routes import load_campaign
from claimkin.services import campaign_content_service, gift_service, member_service
from claimkin.utils.authz import require_admin
from claimkin.utils.request_info import json_body

campaign_content = Blueprint("campaign_content", __name__)


# invite codes


@campaign_content.get("/<campaign_id>/invite-codes")
@require_admin()
def invite_codes(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    return jsonify({"invite_codes": list_invite_codes(campaign["id"])}), 200


@campaign_content.post("/<campaign_id>/invite-codes")
@require_admin()
def create_invite_code(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = campaign_content_service.create_invite_code(g.admin, campaign, json_body())
    return jsonify(payload), status


@campaign_content.patch("/<campaign_id>/invite-codes/<code_id>")
@require_admin()
def update_invite_code(campaign_id, code_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = campaign_content_service.toggle_invite_code(g.admin, campaign, code_id, json_body())
    return jsonify(payload), status


@campaign_content.delete("/<campaign_id>/invite-codes/<code_id>")
@require_admin()
def delete_invite_code(campaign_id, code_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = campaign_content_service.remove_invite_code(g.admin, campaign, code_id)
    return jsonify(payload), status


# questions


@campaign_content.get("/<campaign_id>/questions")
@require_admin()
def questions(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    return jsonify({"questions": list_questions(campaign["id"])}), 200


@campaign_content.post("/<campaign_id>/questions")
@require_admin()
def create_question(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = campaign_content_service.create_question(g.admin, campaign, json_body())
    return jsonify(payload), status


@campaign_content.patch("/<campaign_id>/questions/<question_id>")
@require_admin()
def update_question(campaign_id, question_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = campaign_content_service.patch_question(
        g.admin, campaign, question_id, json_body()
    )
    return jsonify(payload), status


@campaign_content.delete("/<campaign_id>/questions/<question_id>")
@require_admin()
def delete_question(campaign_id, question_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = campaign_content_service.remove_question(g.admin, campaign, question_id)
    return jsonify(payload), status


# members


@campaign_content.get("/<campaign_id>/members")
@require_admin()
def members(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    return jsonify(member_service.members(g.admin, campaign)), 200


@campaign_content.post("/<campaign_id>/members")
@require_admin()
def add_member(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = member_service.set_member(g.admin, campaign, json_body(), adding=True)
    return jsonify(payload), status


@campaign_content.put("/<campaign_id>/members")
@require_admin()
def change_member(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = member_service.set_member(g.admin, campaign, json_body(), adding=False)
    return jsonify(payload), status


@campaign_content.delete("/<campaign_id>/members")
@require_admin()
def remove_member(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = member_service.remove(g.admin, campaign, request.args.get("user_id"))
    return jsonify(payload), status


# gift codes of the calling admin


@campaign_content.get("/<campaign_id>/my-gift-code")
@require_admin()
def my_gift_codes(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    return jsonify(gift_service.my_codes(g.admin, campaign)), 200


@campaign_content.post("/<campaign_id>/my-gift-code")
@require_admin()
def create_gift_code(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = gift_service.create_code(g.admin, campaign, json_body())
    return jsonify(payload), status


@campaign_content.put("/<campaign_id>/my-gift-code")
@require_admin()
def update_gift_code(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = gift_service.update_code(g.admin, campaign, json_body())
    return jsonify(payload), status


@campaign_content.delete("/<campaign_id>/my-gift-code")
@require_admin()
def delete_gift_code(campaign_id):
    campaign, err = load_campaign(campaign_id)
    if err:
        return err
    status, payload = gift_service.delete_code(g.admin, campaign, request.args.get("code_id"))
    return jsonify(payload), status
