"""
Per-admin gift codes. Each code is a shareable link (usually printed as a QR
code) that attributes claims to the admin and shows the recipient whatever
parts of the admin's profile the code allows.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple

from psycopg2 import errors as pg_errors

from claimkin.models.admin_user import get_admin_user
from claimkin.models.campaign import get_campaign_by_slug
from claimkin.models.gift_code import (
    EDITABLE_FIELDS,
    VISIBILITY_FIELDS,
    delete_gift_code,
    find_gift_code,
    get_gift_code,
    insert_gift_code,
    list_gift_codes,
    update_gift_code,
)
from claimkin.utils.crypto import generate_gift_code
from claimkin.utils.permissions import get_campaign_access
from claimkin.utils.text import clean, strip_html

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "New QR Code"
MAX_CODE_ATTEMPTS = 3


def _display_name(profile: Dict[str, Any], custom: Optional[str] = None) -> str:
    return custom or profile.get("display_name") or profile.get("name") or profile.get("email") or ""


def _editable(body: Dict[str, Any]) -> Dict[str, Any]:
    fields = {}
    for k in EDITABLE_FIELDS:
        if k not in body:
            continue
        if k in VISIBILITY_FIELDS:
            fields[k] = bool(body[k])
        else:
            fields[k] = clean(body[k])
    return fields


def my_codes(admin: Dict[str, Any], campaign: Dict[str, Any]) -> Dict[str, Any]:
    profile = get_admin_user(admin["id"]) or admin
    return {
        "codes": list_gift_codes(admin["id"], campaign["id"]),
        "campaign_slug": campaign["slug"],
        "campaign_title": campaign.get("internal_title") or strip_html(campaign.get("title")),
        "profile": {
            "display_name": _display_name(profile),
            "email": profile.get("email"),
            "linkedin_url": profile.get("linkedin_url"),
            "bio": profile.get("bio"),
            "phone": profile.get("phone"),
        },
    }


def create_code(
    admin: Dict[str, Any], campaign: Dict[str, Any], body: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    if not get_campaign_access(admin, campaign)["can_gift"]:
        return 403, {"error": "You do not have permission to gift in this campaign"}
    fields = _editable(body)
    fields["label"] = fields.get("label") or DEFAULT_LABEL
    for attempt in range(MAX_CODE_ATTEMPTS):
        try:
            row = insert_gift_code(admin["id"], campaign["id"], generate_gift_code(), fields)
            break
        except pg_errors.UniqueViolation:
            logger.warning("[gift] code collision, retrying (%d)", attempt + 1)
    else:
        return 409, {"error": "Could not generate a unique code, try again"}
    logger.info("[gift] code %s created by %s in %s", row["id"], admin["id"], campaign["id"])
    return 201, {"code": row}


def _owned_code(admin: Dict[str, Any], campaign: Dict[str, Any], code_id) -> Optional[Dict[str, Any]]:
    if not code_id:
        return None
    row = get_gift_code(code_id)
    if not row:
        return None
    if str(row["admin_id"]) != str(admin["id"]) or str(row["campaign_id"]) != str(campaign["id"]):
        return None
    return row


def update_code(
    admin: Dict[str, Any], campaign: Dict[str, Any], body: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    code_id = body.get("code_id")
    if not code_id:
        return 400, {"error": "code_id is required"}
    if not _owned_code(admin, campaign, code_id):
        return 404, {"error": "Code not found or not owned by you"}
    row = update_gift_code(code_id, **_editable(body))
    return 200, {"code": row}


def delete_code(admin: Dict[str, Any], campaign: Dict[str, Any], code_id) -> Tuple[int, Dict[str, Any]]:
    if not code_id:
        return 400, {"error": "code_id is required"}
    if not _owned_code(admin, campaign, code_id):
        return 404, {"error": "Code not found or not owned by you"}
    delete_gift_code(code_id)
    logger.info("[gift] code %s deleted by %s", code_id, admin["id"])
    return 200, {"success": True}


def gifter_info(slug: str, code: str) -> Tuple[int, Dict[str, Any]]:
    """Public view of a gift code: only the profile parts its flags allow."""
    campaign = get_campaign_by_slug(slug)
    if not campaign or not campaign.get("is_active"):
        return 404, {"error": "Campaign not found or inactive"}
    row = find_gift_code(campaign["id"], (code or "").strip())
    if not row or not row.get("admin_is_active"):
        return 404, {"error": "Gift code not found"}

    profile = {
        "display_name": row.get("admin_display_name"),
        "name": row.get("admin_name"),
        "email": row.get("admin_email"),
    }
    gifter: Dict[str, Any] = {"custom_message": row.get("custom_message")}
    if row.get("show_name"):
        gifter["name"] = _display_name(profile, row.get("custom_display_name"))
    if row.get("show_linkedin"):
        gifter["linkedin_url"] = row.get("admin_linkedin_url")
    if row.get("show_bio"):
        gifter["bio"] = row.get("admin_bio")
    if row.get("show_phone"):
        gifter["phone"] = row.get("admin_phone")
    if row.get("show_email"):
        gifter["email"] = row.get("admin_email")
    return 200, {"gifter": gifter, "code": row["code"]}
