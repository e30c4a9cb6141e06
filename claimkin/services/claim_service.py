"""
Public claim flow: campaign page config, address submission, pre-created
claim completion and email verification.
"""

from __future__ import annotations
import json
import logging
import os
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from claimkin.models.admin_user import get_admin_user
from claimkin.models.campaign import get_campaign, get_campaign_by_slug
from claimkin.models.claim import (
    count_capacity_used,
    count_email_claims,
    count_ip_claims_since,
    count_location_claims,
    get_claim,
    get_claim_by_token,
    insert_claim,
    person_claim_exists,
    update_claim,
)
from claimkin.models.email_verification import (
    find_open_verification,
    insert_verification,
    mark_verification_used,
)
from claimkin.models.gift_code import find_gift_code
from claimkin.models.global_setting import get_settings
from claimkin.models.invite_code import consume_invite_code, find_invite_code
from claimkin.models.question import insert_answers, list_questions
from claimkin.realtime import broadcast_claim_created
from claimkin.services.email_service import (
    claim_verification_message,
    gift_confirmation_message,
)
from claimkin.tasks import send_message
from claimkin.utils.address import (
    address_fingerprint,
    location_fingerprint,
    normalize_email,
    validate_postal_code,
)
from claimkin.utils.crypto import generate_verification_token, hash_ip, hash_value
from claimkin.utils.metrics import CLAIMS_SUBMITTED
from claimkin.utils.text import clean
from claimkin.utils.timezone import now_utc

logger = logging.getLogger(__name__)

VERIFICATION_TTL = timedelta(hours=24)

# request key -> accepted spellings; the landing page posts camelCase
FIELD_ALIASES = {
    "first_name": ("first_name", "firstName"),
    "last_name": ("last_name", "lastName"),
    "email": ("email",),
    "company": ("company",),
    "title": ("title",),
    "phone": ("phone",),
    "linkedin_url": ("linkedin_url", "linkedinUrl"),
    "address1": ("address1",),
    "address2": ("address2",),
    "city": ("city",),
    "region": ("region",),
    "postal_code": ("postal_code", "postalCode"),
    "country": ("country",),
    "invite_code": ("invite_code", "inviteCode"),
    "claim_token": ("claim_token", "claimToken"),
    "gift_code": ("gift_code", "giftCode"),
    "admin_notes": ("admin_notes", "adminNotes"),
}
REQUIRED_ADDRESS = ("first_name", "last_name", "address1", "city", "region", "postal_code", "country")

PUBLIC_CAMPAIGN_FIELDS = (
    "id",
    "slug",
    "title",
    "description",
    "starts_at",
    "ends_at",
    "require_email",
    "require_email_verification",
    "require_invite_code",
    "show_scarcity",
    "collect_company",
    "collect_phone",
    "collect_title",
    "test_mode",
    "show_banner",
    "show_logo",
    "kiosk_mode",
    "enable_questions",
    "privacy_blurb",
    "consent_text",
    "contact_email",
    "contact_text",
    "questions_intro_text",
    "banner_url",
    "capacity_total",
)


def read_claim_input(body: Dict[str, Any]) -> Dict[str, Optional[str]]:
    out = {}
    for field, keys in FIELD_ALIASES.items():
        value = None
        for k in keys:
            if body.get(k) not in (None, ""):
                value = body[k]
                break
        out[field] = clean(str(value)) if value is not None else None
    return out


def missing_address(data: Dict[str, Any]) -> bool:
    return any(not data.get(k) for k in REQUIRED_ADDRESS)


def _is_unlimited(campaign: Dict[str, Any]) -> bool:
    return not campaign.get("capacity_total")


def window_state(campaign: Dict[str, Any], used: Optional[int] = None) -> str:
    now = now_utc()
    if campaign.get("starts_at") and campaign["starts_at"] > now:
        return "not_started"
    if campaign.get("ends_at") and campaign["ends_at"] < now:
        return "ended"
    if used is not None and not _is_unlimited(campaign) and used >= campaign["capacity_total"]:
        return "full"
    return "open"


def _capacity_used(campaign: Dict[str, Any]) -> int:
    return count_capacity_used(campaign["id"], include_test=bool(campaign.get("test_mode")))


def public_campaign(slug: str) -> Tuple[int, Dict[str, Any]]:
    campaign = get_campaign_by_slug(slug)
    if not campaign or not campaign.get("is_active"):
        return 404, {"error": "Campaign not found or inactive"}

    used = _capacity_used(campaign)
    payload = {k: campaign.get(k) for k in PUBLIC_CAMPAIGN_FIELDS}
    payload["state"] = window_state(campaign, used)
    if campaign.get("show_scarcity") and not _is_unlimited(campaign):
        payload["remaining"] = max(campaign["capacity_total"] - used, 0)
    payload["questions"] = (
        list_questions(campaign["id"]) if campaign.get("enable_questions") else []
    )
    payload["defaults"] = get_settings(("default_consent_text", "default_privacy_blurb"))
    return 200, {"campaign": payload}


def _collect_answers(
    campaign: Dict[str, Any], answers: Any
) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    """
    Validate answers against the campaign's questions.
    Returns (error, rows) where rows are ready for insert_answers.
    """
    if not campaign.get("enable_questions"):
        return None, []
    answers = answers if isinstance(answers, dict) else {}
    rows = []
    for q in list_questions(campaign["id"]):
        value = answers.get(str(q["id"]))
        if isinstance(value, list):
            value = [str(v).strip() for v in value if str(v).strip()]
        elif value is not None:
            value = str(value).strip()
        if not value:
            if q["is_required"]:
                return f"Please answer: {q['question_text']}", []
            continue
        if isinstance(value, list):
            rows.append({"question_id": q["id"], "answer_text": json.dumps(value)})
        else:
            rows.append(
                {"question_id": q["id"], "answer_text": value, "answer_option": value}
            )
    return None, rows


def _verification_base_url() -> str:
    return (
        os.getenv("CAMPAIGN_BASE_URL") or os.getenv("APP_BASE_URL") or "http://localhost:3000"
    ).rstrip("/")


def _start_verification(claim: Dict[str, Any], campaign: Dict[str, Any]) -> None:
    token = generate_verification_token()
    insert_verification(claim["id"], hash_value(token), now_utc() + VERIFICATION_TTL)
    link = f"{_verification_base_url()}/verify?token={token}"
    send_message(claim["email"], claim_verification_message(link, campaign.get("title")))


def _send_gift_confirmation(claim: Dict[str, Any], campaign: Dict[str, Any]) -> None:
    if not claim.get("pre_created_by") or not claim.get("email"):
        return
    gifter = get_admin_user(claim["pre_created_by"])
    if not gifter:
        return
    name = gifter.get("display_name") or gifter.get("name") or gifter["email"]
    send_message(
        claim["email"],
        gift_confirmation_message(
            campaign.get("title"),
            name,
            gifter.get("linkedin_url"),
            claim.get("gift_note_to_recipient"),
        ),
    )


def _announce(campaign: Dict[str, Any], claim: Dict[str, Any]) -> None:
    broadcast_claim_created(
        campaign["id"],
        {
            "campaign_id": str(campaign["id"]),
            "claim_id": str(claim["id"]),
            "count": _capacity_used(campaign),
            "capacity_total": campaign.get("capacity_total"),
        },
    )


def address_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "first_name": data["first_name"],
        "last_name": data["last_name"],
        "address1": data["address1"],
        "address2": data.get("address2"),
        "city": data["city"],
        "region": data["region"],
        "postal_code": data["postal_code"],
        "country": data["country"],
        "address_fingerprint": address_fingerprint(
            data["first_name"],
            data["last_name"],
            data["address1"],
            data["city"],
            data["region"],
            data["postal_code"],
            data["country"],
        ),
        "location_fingerprint": location_fingerprint(
            data["address1"], data["city"], data["region"], data["postal_code"], data["country"]
        ),
    }


def _address_limit_error(campaign: Dict[str, Any], location_fp: str) -> Optional[str]:
    limit = campaign.get("max_claims_per_address")
    if not limit or limit <= 0:
        return None
    if count_location_claims(campaign["id"], location_fp) >= limit:
        noun = "person" if limit == 1 else "people"
        return f"This address has reached the maximum of {limit} {noun} for this campaign"
    return None


ALREADY_REGISTERED = (
    "Good news - you're already registered! We have your information for this campaign."
)


def submit_claim(
    slug: str, body: Dict[str, Any], ip: str, user_agent: Optional[str]
) -> Tuple[int, Dict[str, Any]]:
    status, payload = _submit(slug, body, ip, user_agent)
    if status >= 400:
        outcome = "rejected"
    else:
        outcome = "pending" if payload.get("requires_verification") else "confirmed"
    CLAIMS_SUBMITTED.labels(outcome=outcome).inc()
    return status, payload


def _submit(
    slug: str, body: Dict[str, Any], ip: str, user_agent: Optional[str]
) -> Tuple[int, Dict[str, Any]]:
    campaign = get_campaign_by_slug(slug)
    if not campaign or not campaign.get("is_active"):
        return 404, {"error": "Campaign not found or inactive"}

    state = window_state(campaign)
    if state == "not_started":
        return 400, {"error": "Campaign has not started yet"}
    if state == "ended":
        return 400, {"error": "Campaign has ended"}

    data = read_claim_input(body)
    consent = body.get("consent") is True
    ip_hash = hash_ip(ip)

    if data["claim_token"]:
        return _complete_pre_created(campaign, data, consent, body, ip_hash, user_agent)

    if missing_address(data):
        return 400, {"error": "Missing required address fields"}
    if campaign.get("require_email") and not data["email"]:
        return 400, {"error": "Email is required for this campaign"}
    if not consent:
        return 400, {"error": "Consent is required to submit"}
    if not validate_postal_code(data["postal_code"], data["country"].upper()):
        return 400, {"error": "Invalid postal code"}

    answer_error, answer_rows = _collect_answers(campaign, body.get("answers"))
    if answer_error:
        return 400, {"error": answer_error}

    invite = None
    if campaign.get("require_invite_code"):
        if not data["invite_code"]:
            return 400, {"error": "Invite code is required"}
        invite = find_invite_code(campaign["id"], data["invite_code"])
        if not invite or not invite["is_active"]:
            return 400, {"error": "Invalid invite code"}
        if invite["max_uses"] is not None and invite["uses"] >= invite["max_uses"]:
            return 400, {"error": "Invite code has reached maximum uses"}

    gifter_id = None
    if data["gift_code"]:
        gift = find_gift_code(campaign["id"], data["gift_code"])
        if not gift:
            return 400, {"error": "Invalid gift code"}
        gifter_id = gift["admin_id"]

    if not _is_unlimited(campaign) and _capacity_used(campaign) >= campaign["capacity_total"]:
        return 400, {"error": "Campaign is at capacity"}

    ip_limit = campaign.get("max_claims_per_ip_per_day") or 0
    if ip_limit > 0:
        since = now_utc() - timedelta(days=1)
        if count_ip_claims_since(campaign["id"], ip_hash, since) >= ip_limit:
            return 429, {"error": "Too many claims from this IP address"}

    address = address_fields(data)
    if person_claim_exists(campaign["id"], address["address_fingerprint"]):
        return 400, {"error": ALREADY_REGISTERED}
    limit_error = _address_limit_error(campaign, address["location_fingerprint"])
    if limit_error:
        return 400, {"error": limit_error}

    email_norm = normalize_email(data["email"]) if data["email"] else None
    email_limit = campaign.get("max_claims_per_email") or 0
    if email_norm and email_limit > 0:
        if count_email_claims(campaign["id"], email_norm) >= email_limit:
            return 400, {"error": "This email has already been used for this campaign"}

    # last gate before insert so a rejected submission never burns a use
    if invite and not consume_invite_code(invite["id"]):
        return 400, {"error": "Invite code has reached maximum uses"}

    needs_verification = bool(campaign.get("require_email_verification") and data["email"])
    now = now_utc()
    claim = insert_claim(
        {
            "campaign_id": campaign["id"],
            "status": "pending" if needs_verification else "confirmed",
            "is_test_claim": bool(campaign.get("test_mode")),
            **address,
            "email": data["email"],
            "email_normalized": email_norm,
            "company": data["company"],
            "title": data["title"],
            "phone": data["phone"],
            "linkedin_url": data["linkedin_url"],
            "invite_code": data["invite_code"].upper() if data["invite_code"] else None,
            "ip_hash": ip_hash,
            "user_agent": user_agent,
            "consent_given": True,
            "consent_timestamp": now,
            "pre_created_by": gifter_id,
            "confirmed_at": None if needs_verification else now,
        }
    )
    insert_answers(claim["id"], answer_rows)
    logger.info("[claim] %s created for campaign %s", claim["id"], campaign["id"])

    if needs_verification:
        _start_verification(claim, campaign)
    elif gifter_id:
        _send_gift_confirmation(claim, campaign)
    _announce(campaign, claim)

    return 201, {
        "ok": True,
        "requires_verification": needs_verification,
        "claim_id": claim["id"],
    }


def _complete_pre_created(
    campaign: Dict[str, Any],
    data: Dict[str, Any],
    consent: bool,
    body: Dict[str, Any],
    ip_hash: str,
    user_agent: Optional[str],
) -> Tuple[int, Dict[str, Any]]:
    if missing_address(data):
        return 400, {"error": "Missing required address fields"}
    if not consent:
        return 400, {"error": "Consent is required to submit"}

    existing = get_claim_by_token(campaign["id"], data["claim_token"])
    if not existing:
        return 404, {"error": "Invalid or expired claim token"}
    if existing.get("address1"):
        return 400, {"error": "This claim has already been submitted"}

    answer_error, answer_rows = _collect_answers(campaign, body.get("answers"))
    if answer_error:
        return 400, {"error": answer_error}

    address = address_fields(data)
    if person_claim_exists(
        campaign["id"], address["address_fingerprint"], exclude_id=existing["id"]
    ):
        return 400, {"error": ALREADY_REGISTERED}
    limit_error = _address_limit_error(campaign, address["location_fingerprint"])
    if limit_error:
        return 400, {"error": limit_error}

    email = data["email"] or existing.get("email")
    needs_verification = bool(campaign.get("require_email_verification") and email)
    now = now_utc()
    claim = update_claim(
        existing["id"],
        **address,
        email=email,
        email_normalized=normalize_email(email) if email else None,
        company=data["company"] or existing.get("company"),
        title=data["title"] or existing.get("title"),
        phone=data["phone"] or existing.get("phone"),
        invite_code=data["invite_code"].upper() if data["invite_code"] else None,
        ip_hash=ip_hash,
        user_agent=user_agent,
        consent_given=True,
        consent_timestamp=now,
        status="pending" if needs_verification else "confirmed",
        is_test_claim=bool(campaign.get("test_mode")),
        confirmed_at=None if needs_verification else now,
    )
    insert_answers(claim["id"], answer_rows)
    logger.info("[claim] pre-created claim %s submitted", claim["id"])

    if needs_verification:
        _start_verification(claim, campaign)
    else:
        _send_gift_confirmation(claim, campaign)
    _announce(campaign, claim)

    return 200, {
        "ok": True,
        "requires_verification": needs_verification,
        "claim_id": claim["id"],
    }


def pre_created_prefill(slug: str, token: str) -> Tuple[int, Dict[str, Any]]:
    campaign = get_campaign_by_slug(slug)
    if not campaign or not campaign.get("is_active"):
        return 404, {"error": "Campaign not found or inactive"}
    claim = get_claim_by_token(campaign["id"], token)
    if not claim:
        return 404, {"error": "Invalid or expired claim token"}
    if claim.get("address1"):
        return 400, {"error": "This claim has already been submitted"}
    prefill = {
        k: claim.get(k)
        for k in ("first_name", "last_name", "email", "company", "title", "phone")
    }
    gifter = get_admin_user(claim["pre_created_by"]) if claim.get("pre_created_by") else None
    return 200, {
        "prefill": prefill,
        "note": claim.get("gift_note_to_recipient"),
        "gifter_name": (gifter.get("display_name") or gifter.get("name")) if gifter else None,
    }


def verify_email(token: str) -> Tuple[int, Dict[str, Any]]:
    if not token:
        return 400, {"error": "Missing token"}
    verification = find_open_verification(hash_value(token))
    if not verification:
        return 404, {"error": "Invalid or already used verification link"}
    if verification["expires_at"] < now_utc():
        return 410, {"error": "Verification link has expired"}

    claim = get_claim(verification["claim_id"])
    if not claim:
        return 404, {"error": "Invalid or already used verification link"}
    mark_verification_used(verification["id"])
    if claim["status"] == "pending":
        claim = update_claim(claim["id"], status="confirmed", confirmed_at=now_utc())
        campaign = get_campaign(claim["campaign_id"])
        if campaign:
            _send_gift_confirmation(claim, campaign)
    logger.info("[claim] %s verified", claim["id"])
    return 200, {"ok": True, "claim_id": claim["id"], "status": claim["status"]}
