from __future__ import annotations
import logging
import os
from typing import Any, Dict, List, Tuple

from claimkin.models.campaign import get_campaign
from claimkin.models.claim import (
    count_capacity_used,
    delete_claim,
    delete_claims,
    get_claim,
    get_claims,
    insert_claim,
    person_claim_exists,
    set_shipped,
    update_claim,
)
from claimkin.realtime import broadcast_claim_created
from claimkin.services.claim_service import (
    address_fields,
    missing_address,
    read_claim_input,
)
from claimkin.utils.address import normalize_email
from claimkin.utils.crypto import generate_claim_token, hash_value
from claimkin.utils.permissions import get_campaign_access
from claimkin.utils.text import clean
from claimkin.utils.timezone import now_utc

logger = logging.getLogger(__name__)

CLAIM_STATUSES = ("pending", "confirmed", "rejected")
CONTACT_FIELDS = ("first_name", "last_name", "email", "company", "title", "phone")


def is_pre_created(claim: Dict[str, Any]) -> bool:
    return bool(claim.get("claim_token")) and not claim.get("address1")


def claim_url(slug: str, token: str) -> str:
    base = (os.getenv("APP_BASE_URL") or "http://localhost:3000").rstrip("/")
    return f"{base}/c/{slug}/claim/{token}"


def pre_create(
    admin: Dict[str, Any], campaign: Dict[str, Any], body: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    """Reserve a spot for a named recipient who fills in the address later."""
    token = generate_claim_token()
    email = clean(body.get("email"))
    claim = insert_claim(
        {
            "campaign_id": campaign["id"],
            "claim_token": token,
            "status": "pending",
            "is_test_claim": bool(campaign.get("test_mode")),
            "first_name": clean(body.get("first_name")) or "",
            "last_name": clean(body.get("last_name")) or "",
            "email": email,
            "email_normalized": normalize_email(email) if email else None,
            "company": clean(body.get("company")),
            "title": clean(body.get("title")),
            "phone": clean(body.get("phone")),
            "admin_notes": clean(body.get("admin_notes")),
            "gift_note_to_recipient": clean(body.get("gift_note_to_recipient")),
            "pre_created_by": admin["id"],
            # replaced when the recipient submits an address
            "address_fingerprint": hash_value(f"preclaim:{token}"),
            "country": "US",
        }
    )
    logger.info("[claim] pre-created %s in %s by %s", claim["id"], campaign["id"], admin["id"])
    return 201, {"claim": claim, "claim_url": claim_url(campaign["slug"], token)}


def register(
    admin: Dict[str, Any], campaign: Dict[str, Any], body: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    """Admin-entered address, confirmed immediately."""
    data = read_claim_input(body)
    if missing_address(data):
        return 400, {
            "error": "Missing required fields: first name, last name, and full address are required"
        }

    address = address_fields(data)
    if person_claim_exists(campaign["id"], address["address_fingerprint"]):
        return 409, {
            "error": (
                "A claim with this name and address already exists "
                f"({data['first_name']} {data['last_name']})"
            )
        }

    include_test = bool(campaign.get("test_mode"))
    capacity = campaign.get("capacity_total")
    if capacity and count_capacity_used(campaign["id"], include_test) >= capacity:
        return 400, {"error": "Campaign is at capacity"}

    now = now_utc()
    claim = insert_claim(
        {
            "campaign_id": campaign["id"],
            "status": "confirmed",
            "confirmed_at": now,
            "is_test_claim": include_test,
            **address,
            "email": data["email"],
            "email_normalized": normalize_email(data["email"]) if data["email"] else None,
            "company": data["company"],
            "title": data["title"],
            "phone": data["phone"],
            "linkedin_url": data["linkedin_url"],
            "admin_notes": data["admin_notes"],
            "pre_created_by": admin["id"],
            "consent_given": True,
            "consent_timestamp": now,
        }
    )
    used = count_capacity_used(campaign["id"], include_test)
    broadcast_claim_created(
        campaign["id"],
        {
            "campaign_id": str(campaign["id"]),
            "claim_id": str(claim["id"]),
            "count": used,
            "capacity_total": capacity,
        },
    )
    logger.info("[claim] registered %s in %s by %s", claim["id"], campaign["id"], admin["id"])
    return 201, {"claim": claim, "total_claimed": used, "capacity_total": capacity}


def update(admin: Dict[str, Any], claim_id, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    claim = get_claim(claim_id)
    if not claim:
        return 404, {"error": "Claim not found"}
    campaign = get_campaign(claim["campaign_id"])
    if not get_campaign_access(admin, campaign)["can_edit"]:
        return 403, {"error": "You do not have permission to edit claims in this campaign"}

    fields: Dict[str, Any] = {}
    if "admin_notes" in body:
        fields["admin_notes"] = clean(body["admin_notes"])
    if "shipped_at" in body:
        fields["shipped_at"] = now_utc() if body["shipped_at"] else None
    if "status" in body:
        if body["status"] not in CLAIM_STATUSES:
            return 400, {"error": "Invalid status"}
        fields["status"] = body["status"]
        if body["status"] == "confirmed" and not claim.get("confirmed_at"):
            fields["confirmed_at"] = now_utc()
    for k in CONTACT_FIELDS:
        if k in body:
            fields[k] = clean(body[k])
    if "email" in fields:
        fields["email_normalized"] = normalize_email(fields["email"]) if fields["email"] else None

    updated = update_claim(claim_id, **fields)
    logger.info("[claim] %s updated by %s", claim_id, admin["id"])
    return 200, {"claim": updated}


def remove(admin: Dict[str, Any], claim_id) -> Tuple[int, Dict[str, Any]]:
    claim = get_claim(claim_id)
    if not claim:
        return 404, {"error": "Claim not found"}
    pre_created = is_pre_created(claim)
    if admin["role"] != "super_admin" and not pre_created:
        campaign = get_campaign(claim["campaign_id"])
        if not campaign or not get_campaign_access(admin, campaign)["can_edit"]:
            return 403, {
                "error": "You do not have permission to delete claims in this campaign"
            }
    delete_claim(claim_id)
    logger.info(
        "[claim] %s deleted by %s%s",
        claim_id,
        admin["id"],
        " (pre-created)" if pre_created else "",
    )
    return 200, {"success": True}


def _clean_ids(ids) -> List[str]:
    if not isinstance(ids, list):
        return []
    return [str(i) for i in ids if i]


def bulk_update(admin: Dict[str, Any], body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    ids = _clean_ids(body.get("claim_ids"))
    if not ids:
        return 400, {"error": "claim_ids required"}
    if "shipped" not in body:
        return 400, {"error": "shipped required"}

    claims = get_claims(ids)
    if admin["role"] != "super_admin":
        for campaign_id in {c["campaign_id"] for c in claims}:
            campaign = get_campaign(campaign_id)
            if not campaign or not get_campaign_access(admin, campaign)["can_edit"]:
                return 403, {"error": "You do not have permission to edit some of these claims"}

    shipped_at = now_utc() if body["shipped"] else None
    n = set_shipped([str(c["id"]) for c in claims], shipped_at)
    logger.info("[claim] bulk shipped=%s on %d claims by %s", bool(shipped_at), n, admin["id"])
    return 200, {"updated": n}


def bulk_delete(admin: Dict[str, Any], body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    if admin["role"] != "super_admin":
        return 403, {"error": "Only super admins can bulk delete claims"}
    ids = _clean_ids(body.get("claim_ids"))
    if not ids:
        return 400, {"error": "claim_ids required"}
    n = delete_claims(ids)
    logger.info("[claim] bulk deleted %d claims by %s", n, admin["id"])
    return 200, {"deleted": n}
