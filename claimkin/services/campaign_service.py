from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple

from psycopg2.errors import UniqueViolation

from claimkin.models.admin_user import get_admin_by_email
from claimkin.models.campaign import (
    get_campaign,
    insert_campaign,
    list_campaigns,
    slug_exists,
    update_campaign,
    delete_campaign,
)
from claimkin.models.campaign_member import upsert_member
from claimkin.models.campaign_version import get_draft
from claimkin.models.claim import claim_stats, count_capacity_used, count_claims
from claimkin.services import version_service
from claimkin.utils.permissions import (
    can_create_campaign,
    can_view_campaigns,
    get_campaign_access,
)
from claimkin.utils.slug import slugify
from claimkin.utils.text import clean
from claimkin.utils.timezone import parse_campaign_datetime, utc_to_eastern

logger = logging.getLogger(__name__)

BOOL_FIELDS = (
    "is_active",
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
)
TEXT_FIELDS = (
    "internal_title",
    "description",
    "privacy_blurb",
    "consent_text",
    "contact_email",
    "contact_text",
    "questions_intro_text",
    "banner_url",
    "notes",
)
# NOT NULL limits fall back to their defaults when cleared
INT_DEFAULTS = {"max_claims_per_email": 1, "max_claims_per_ip_per_day": 5}
NULLABLE_INTS = ("capacity_total", "max_claims_per_address")


class CampaignInputError(ValueError):
    pass


def _as_bool(v) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


def _as_int(name: str, v) -> Optional[int]:
    if v is None or v == "":
        return None
    try:
        n = int(v)
    except (TypeError, ValueError):
        raise CampaignInputError(f"{name} must be a whole number")
    if n < 0:
        raise CampaignInputError(f"{name} cannot be negative")
    return n


def normalize_campaign_input(body: Dict[str, Any], creating: bool = False) -> Dict[str, Any]:
    """Coerce a request body into campaign column values. Unknown keys are ignored."""
    out: Dict[str, Any] = {}
    if "title" in body or creating:
        title = clean(body.get("title"))
        if not title:
            raise CampaignInputError("title required")
        out["title"] = title
    for k in BOOL_FIELDS:
        if k in body:
            out[k] = _as_bool(body[k])
    for k in TEXT_FIELDS:
        if k in body:
            out[k] = clean(body[k])
    for k in NULLABLE_INTS:
        if k in body:
            out[k] = _as_int(k, body[k])
    for k, default in INT_DEFAULTS.items():
        if k in body:
            n = _as_int(k, body[k])
            out[k] = default if not n else n
    for k in ("starts_at", "ends_at"):
        if k in body:
            try:
                out[k] = parse_campaign_datetime(body[k])
            except ValueError:
                raise CampaignInputError(f"{k} is not a valid date")
    starts, ends = out.get("starts_at"), out.get("ends_at")
    if starts and ends and ends <= starts:
        raise CampaignInputError("ends_at must be after starts_at")
    return out


def _with_local_times(campaign: Dict[str, Any]) -> Dict[str, Any]:
    campaign = dict(campaign)
    campaign["starts_at_local"] = utc_to_eastern(campaign.get("starts_at"))
    campaign["ends_at_local"] = utc_to_eastern(campaign.get("ends_at"))
    return campaign


def list_for_admin(admin: Dict[str, Any], owner: str = "all", include_hidden: bool = False):
    if not can_view_campaigns(admin["role"]):
        return []
    created_by = None
    if owner == "mine":
        created_by = admin["id"]
    elif owner and owner != "all":
        target = get_admin_by_email(owner)
        if not target:
            return []
        created_by = target["id"]
    return list_campaigns(created_by=created_by, include_hidden=include_hidden)


def create(admin: Dict[str, Any], body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    if not can_create_campaign(admin["role"]):
        return 403, {"error": "You do not have permission to create campaigns"}
    raw_slug = clean(body.get("slug"))
    if not raw_slug:
        return 400, {"error": "Missing required fields: slug, title"}
    slug = slugify(raw_slug)
    try:
        fields = normalize_campaign_input(body, creating=True)
    except CampaignInputError as e:
        return 400, {"error": str(e)}
    if slug_exists(slug):
        return 400, {"error": "A campaign with this slug already exists"}

    try:
        campaign = insert_campaign(slug, fields, admin["id"])
    except UniqueViolation:
        return 409, {"error": "A campaign with this slug already exists"}

    upsert_member(campaign["id"], admin["id"], "owner", invited_by=admin["id"])
    version_service.record_initial_version(campaign, admin["id"])
    logger.info("[campaign] created %s (%s) by %s", campaign["id"], slug, admin["id"])
    return 201, {"campaign": campaign}


def detail(admin: Dict[str, Any], campaign: Dict[str, Any]) -> Dict[str, Any]:
    draft = get_draft(campaign["id"]) if campaign.get("has_draft") else None
    stats = claim_stats(campaign["id"])
    stats["capacity_used"] = count_capacity_used(
        campaign["id"], include_test=bool(campaign.get("test_mode"))
    )
    return {
        "campaign": _with_local_times(campaign),
        "draft": draft,
        "access": get_campaign_access(admin, campaign),
        "stats": stats,
    }


def update(
    admin: Dict[str, Any], campaign: Dict[str, Any], body: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    if not get_campaign_access(admin, campaign)["can_edit"]:
        return 403, {"error": "You do not have permission to edit this campaign"}
    try:
        changes = normalize_campaign_input(body)
    except CampaignInputError as e:
        return 400, {"error": str(e)}
    summary = clean(body.get("change_summary"))
    if _as_bool(body.get("save_as_draft", False)):
        draft = version_service.save_draft(campaign, changes, admin["id"], summary)
        return 200, {"campaign": campaign, "draft": draft, "is_draft": True}
    updated, version = version_service.publish_changes(
        campaign, changes, admin["id"], summary
    )
    return 200, {
        "campaign": updated,
        "version_number": version["version_number"],
        "is_draft": False,
    }


def remove(admin: Dict[str, Any], campaign_id) -> Tuple[int, Dict[str, Any]]:
    if admin["role"] != "super_admin":
        return 403, {"error": "Only super admins can delete campaigns"}
    if not get_campaign(campaign_id):
        return 404, {"error": "Campaign not found"}
    n = count_claims(campaign_id)
    if n > 0:
        return 400, {
            "error": f"Cannot delete campaign with {n} claims. Delete claims first or reject them."
        }
    delete_campaign(campaign_id)
    logger.info("[campaign] deleted %s by %s", campaign_id, admin["id"])
    return 200, {"success": True}


def toggle_flag(campaign: Dict[str, Any], flag: str) -> Dict[str, Any]:
    value = not bool(campaign.get(flag))
    update_campaign(campaign["id"], **{flag: value})
    return {flag: value}
