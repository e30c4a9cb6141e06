"""Invite codes and custom questions attached to a campaign."""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

from psycopg2.errors import UniqueViolation

from claimkin.models.invite_code import (
    delete_invite_code,
    find_invite_code,
    get_invite_code,
    insert_invite_code,
    set_invite_code_active,
)
from claimkin.models.question import (
    QUESTION_TYPES,
    delete_question,
    get_question,
    insert_question,
    update_question,
)
from claimkin.utils.permissions import can_manage_invite_codes, get_campaign_access
from claimkin.utils.text import clean

logger = logging.getLogger(__name__)

CHOICE_TYPES = ("multiple_choice", "checkboxes")


def _can_manage_codes(admin: Dict[str, Any], campaign: Dict[str, Any]) -> bool:
    return can_manage_invite_codes(admin["role"]) and get_campaign_access(admin, campaign)["can_edit"]


def create_invite_code(
    admin: Dict[str, Any], campaign: Dict[str, Any], body: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    if not _can_manage_codes(admin, campaign):
        return 403, {"error": "You do not have permission to manage invite codes"}
    code = (clean(body.get("code")) or "").upper()
    if not code:
        return 400, {"error": "Code is required"}
    max_uses = body.get("max_uses")
    if max_uses in (None, ""):
        max_uses = None
    else:
        try:
            max_uses = int(max_uses)
        except (TypeError, ValueError):
            return 400, {"error": "max_uses must be a number"}
        if max_uses < 1:
            return 400, {"error": "max_uses must be at least 1"}
    if find_invite_code(campaign["id"], code):
        return 400, {"error": "This code already exists for this campaign"}
    try:
        row = insert_invite_code(campaign["id"], code, max_uses, admin["id"])
    except UniqueViolation:
        return 409, {"error": "This code already exists for this campaign"}
    logger.info("[campaign] invite code %s added to %s by %s", code, campaign["id"], admin["id"])
    return 201, {"invite_code": row}


def _campaign_code(campaign: Dict[str, Any], code_id) -> Optional[Dict[str, Any]]:
    row = get_invite_code(code_id)
    if not row or str(row["campaign_id"]) != str(campaign["id"]):
        return None
    return row


def toggle_invite_code(
    admin: Dict[str, Any], campaign: Dict[str, Any], code_id, body: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    if not _can_manage_codes(admin, campaign):
        return 403, {"error": "You do not have permission to manage invite codes"}
    if not _campaign_code(campaign, code_id):
        return 404, {"error": "Invite code not found"}
    if "is_active" not in body:
        return 400, {"error": "is_active is required"}
    return 200, {"invite_code": set_invite_code_active(code_id, bool(body["is_active"]))}


def remove_invite_code(admin: Dict[str, Any], campaign: Dict[str, Any], code_id) -> Tuple[int, Dict[str, Any]]:
    if not _can_manage_codes(admin, campaign):
        return 403, {"error": "You do not have permission to manage invite codes"}
    if not _campaign_code(campaign, code_id):
        return 404, {"error": "Invite code not found"}
    delete_invite_code(code_id)
    return 200, {"success": True}


def _clean_options(question_type: str, options: Any) -> Tuple[Optional[str], Optional[List[str]]]:
    if question_type not in CHOICE_TYPES:
        return None, None
    if not isinstance(options, list):
        return "Options are required for choice questions", None
    opts = [str(o).strip() for o in options if str(o).strip()]
    if len(opts) < 2:
        return "Choice questions need at least two options", None
    return None, opts


def create_question(
    admin: Dict[str, Any], campaign: Dict[str, Any], body: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    if not get_campaign_access(admin, campaign)["can_edit"]:
        return 403, {"error": "You do not have permission to edit this campaign"}
    text = clean(body.get("question_text"))
    qtype = body.get("question_type") or "text"
    if not text:
        return 400, {"error": "question_text is required"}
    if qtype not in QUESTION_TYPES:
        return 400, {"error": "Invalid question_type"}
    err, options = _clean_options(qtype, body.get("options"))
    if err:
        return 400, {"error": err}
    row = insert_question(campaign["id"], text, qtype, options, bool(body.get("is_required", False)))
    return 201, {"question": row}


def _campaign_question(campaign: Dict[str, Any], question_id) -> Optional[Dict[str, Any]]:
    row = get_question(question_id)
    if not row or str(row["campaign_id"]) != str(campaign["id"]):
        return None
    return row


def patch_question(
    admin: Dict[str, Any], campaign: Dict[str, Any], question_id, body: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    if not get_campaign_access(admin, campaign)["can_edit"]:
        return 403, {"error": "You do not have permission to edit this campaign"}
    current = _campaign_question(campaign, question_id)
    if not current:
        return 404, {"error": "Question not found"}

    fields: Dict[str, Any] = {}
    if "question_text" in body:
        text = clean(body["question_text"])
        if not text:
            return 400, {"error": "question_text is required"}
        fields["question_text"] = text
    qtype = body.get("question_type", current["question_type"])
    if qtype not in QUESTION_TYPES:
        return 400, {"error": "Invalid question_type"}
    if "question_type" in body or "options" in body:
        err, options = _clean_options(qtype, body.get("options", current.get("options")))
        if err:
            return 400, {"error": err}
        fields["question_type"] = qtype
        fields["options"] = options
    if "is_required" in body:
        fields["is_required"] = bool(body["is_required"])
    if "display_order" in body:
        try:
            fields["display_order"] = int(body["display_order"])
        except (TypeError, ValueError):
            return 400, {"error": "display_order must be a number"}
    return 200, {"question": update_question(question_id, **fields)}


def remove_question(admin: Dict[str, Any], campaign: Dict[str, Any], question_id) -> Tuple[int, Dict[str, Any]]:
    if not get_campaign_access(admin, campaign)["can_edit"]:
        return 403, {"error": "You do not have permission to edit this campaign"}
    if not _campaign_question(campaign, question_id):
        return 404, {"error": "Question not found"}
    delete_question(question_id)
    return 200, {"success": True}
