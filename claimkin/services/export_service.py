from __future__ import annotations
import csv
import io
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from claimkin.models.claim import list_claims
from claimkin.utils.metrics import EXPORTS
from claimkin.utils.permissions import can_export, get_campaign_access
from claimkin.utils.text import strip_html
from claimkin.utils.timezone import now_utc

logger = logging.getLogger(__name__)

CLAIM_COLUMNS = [
    ("Status", "status"),
    ("First Name", "first_name"),
    ("Last Name", "last_name"),
    ("Email", "email"),
    ("Company", "company"),
    ("Title", "title"),
    ("Phone", "phone"),
    ("Address Line 1", "address1"),
    ("Address Line 2", "address2"),
    ("City", "city"),
    ("State/Region", "region"),
    ("Postal Code", "postal_code"),
    ("Country", "country"),
    ("Invite Code", "invite_code"),
    ("Created At", "created_at"),
    ("Confirmed At", "confirmed_at"),
    ("Shipped At", "shipped_at"),
]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def render_csv(claims: List[Dict[str, Any]], per_campaign: bool) -> str:
    """
    One CSV document. The per-campaign file carries a Test Claim column,
    the all-addresses file the campaign title instead.
    """
    buf = io.StringIO()
    w = csv.writer(buf)
    if per_campaign:
        header = ["Campaign Slug", "Test Claim"]
    else:
        header = ["Campaign Slug", "Campaign Title"]
    w.writerow(header + [label for label, _ in CLAIM_COLUMNS])
    for claim in claims:
        if per_campaign:
            lead = [claim.get("campaign_slug") or "", "Yes" if claim.get("is_test_claim") else "No"]
        else:
            lead = [claim.get("campaign_slug") or "", strip_html(claim.get("campaign_title"))]
        w.writerow(lead + [_cell(claim.get(key)) for _, key in CLAIM_COLUMNS])
    return buf.getvalue()


def _filename(prefix: str) -> str:
    return f"{prefix}-{now_utc().date().isoformat()}.csv"


def export_all(
    admin: Dict[str, Any], args: Dict[str, Any]
) -> Tuple[int, Optional[Dict[str, Any]], Optional[Tuple[str, str]]]:
    """Returns (status, error_payload, (csv_text, filename))."""
    if not can_export(admin["role"]):
        return 403, {"error": "You do not have permission to export addresses"}, None
    claims = list_claims(
        campaign_id=args.get("campaign_id") or None,
        status=args.get("status") or None,
        shipped=args.get("shipped") or None,
        pre_created=args.get("pre_created") or None,
        include_test=args.get("include_test") in ("1", "true"),
    )
    EXPORTS.labels(scope="all").inc()
    logger.info("[export] all addresses (%d rows) by %s", len(claims), admin["id"])
    return 200, None, (render_csv(claims, per_campaign=False), _filename("all-addresses"))


def export_campaign(
    admin: Dict[str, Any], campaign: Dict[str, Any]
) -> Tuple[int, Optional[Dict[str, Any]], Optional[Tuple[str, str]]]:
    if not can_export(admin["role"]) or not get_campaign_access(admin, campaign)["has_access"]:
        return 403, {"error": "You do not have permission to export this campaign"}, None
    claims = list_claims(campaign_id=campaign["id"], include_test=True)
    EXPORTS.labels(scope="campaign").inc()
    logger.info("[export] %s (%d rows) by %s", campaign["slug"], len(claims), admin["id"])
    return 200, None, (render_csv(claims, per_campaign=True), _filename(f"{campaign['slug']}-claims"))
