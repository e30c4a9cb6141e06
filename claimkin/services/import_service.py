"""
CSV address import.

Spreadsheets arrive in several shapes (fulfillment exports, hand-kept
sheets with a title block above the header), so the header row is detected
and columns are matched against a list of known spellings.
"""

from __future__ import annotations
import csv
import io
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import psycopg2

from claimkin.models.campaign import get_campaign_by_slug
from claimkin.models.claim import existing_fingerprints, insert_claim
from claimkin.utils.address import address_fingerprint, location_fingerprint, normalize_email
from claimkin.utils.metrics import ADDRESSES_IMPORTED
from claimkin.utils.permissions import can_import
from claimkin.utils.timezone import now_utc

logger = logging.getLogger(__name__)

HEADER_HINTS = (
    "full name",
    "firstname",
    "lastname",
    "name",
    "email",
    "address",
    "street",
    "city",
    "state",
    "region",
    "zip",
    "postal",
    "country",
)
HEADER_SCAN_ROWS = 10
IMPORT_STATUSES = ("pending", "confirmed", "shipped")

COLUMNS = {
    "first_name": ("firstName", "FirstName"),
    "last_name": ("lastName", "LastName"),
    "email": ("email", "Email"),
    "company": ("company", "Company"),
    "title": ("title", "Role", "Title"),
    "phone": ("phone", "Phone"),
    "address1": ("address1", "Street Address 1", "Address"),
    "address2": ("address2", "Street Address 2"),
    "city": ("city", "City"),
    "region": ("region", "State", "state"),
    "postal_code": ("postalCode", "Zip", "zip", "PostalCode"),
    "country": ("country", "Country"),
    "shipped_date": ("Sent to Charlie Date?", "Shipped Date"),
}

MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")
_month_day_re = re.compile(r"^([A-Za-z]+)\s+(\d{1,2})$")
_slash_re = re.compile(r"^(\d{1,2})/(\d{1,2})(?:/(\d{2,4}))?$")


class ImportFormatError(ValueError):
    pass


def read_rows(text: str) -> List[List[str]]:
    """All non-blank CSV records; quoted fields may span lines."""
    reader = csv.reader(io.StringIO(text.replace("\r\n", "\n").replace("\r", "\n")))
    return [[v.strip() for v in rec] for rec in reader if any(v.strip() for v in rec)]


def find_header_row(rows: List[List[str]]) -> int:
    for i, rec in enumerate(rows[:HEADER_SCAN_ROWS]):
        line = ",".join(rec).lower()
        matches = sum(1 for hint in HEADER_HINTS if hint in line)
        if matches >= 3:
            logger.info("[import] header row detected at line %d (%d matches)", i + 1, matches)
            return i
    logger.info("[import] no header row detected, using first row")
    return 0


def _pick(raw: Dict[str, str], field: str) -> str:
    for key in COLUMNS[field]:
        if raw.get(key):
            return raw[key].strip()
    return ""


def normalize_row(raw: Dict[str, str]) -> Optional[Dict[str, Any]]:
    """Map one raw record to claim fields, or None when name or address is incomplete."""
    first_name = _pick(raw, "first_name")
    last_name = _pick(raw, "last_name")
    full_name = (raw.get("Full Name") or "").strip()
    if not first_name and not last_name and full_name:
        parts = full_name.split()
        first_name = parts[0]
        # single-word names fill both columns
        last_name = " ".join(parts[1:]) or parts[0]
    if not first_name or not last_name:
        return None

    address1 = _pick(raw, "address1")
    if "," in address1 and not raw.get("Street Address 1"):
        parts = [p.strip() for p in address1.split(",")]
        if len(parts) >= 3:
            # "street, city, state zip"
            address1 = parts[0]

    row = {
        "first_name": first_name,
        "last_name": last_name,
        "address1": address1,
        "city": _pick(raw, "city"),
        "region": _pick(raw, "region"),
        "postal_code": _pick(raw, "postal_code"),
        "country": _pick(raw, "country") or "US",
    }
    if not (row["address1"] and row["city"] and row["region"] and row["postal_code"]):
        logger.debug("[import] row failed validation: %s %s", first_name, last_name)
        return None
    for field in ("email", "company", "title", "phone", "address2", "shipped_date"):
        row[field] = _pick(raw, field) or None
    return row


def parse_csv(text: str, skip_rows: Optional[int] = None) -> Tuple[List[Tuple[int, Optional[Dict[str, Any]]]], int]:
    """
    Returns ([(line_number, normalized_row_or_None), ...], header_index).
    skip_rows pins the header index; None auto-detects it.
    """
    rows = read_rows(text)
    if len(rows) < 2:
        raise ImportFormatError("CSV file must have at least a header row and one data row")
    header_index = find_header_row(rows) if skip_rows is None else skip_rows
    if header_index < 0 or header_index >= len(rows) - 1:
        raise ImportFormatError("skipRows leaves no data rows")

    headers = rows[header_index]
    out = []
    for i in range(header_index + 1, len(rows)):
        values = rows[i]
        raw = {h: (values[j] if j < len(values) else "") for j, h in enumerate(headers)}
        out.append((i + 1, normalize_row(raw)))
    return out, header_index


def parse_shipped_date(value: Optional[str], default_year: Optional[int] = None) -> Optional[datetime]:
    """Accepts ISO dates, "Jan 30" / "January 30", "1/30", "1/30/24" and "1/30/2024"."""
    if not value:
        return None
    text = value.strip()
    year = default_year or now_utc().year

    if "-" in text:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    m = _month_day_re.match(text)
    if m:
        name = m.group(1).lower()
        for idx, prefix in enumerate(MONTHS):
            if name.startswith(prefix):
                try:
                    return datetime(year, idx + 1, int(m.group(2)), tzinfo=timezone.utc)
                except ValueError:
                    return None

    m = _slash_re.match(text)
    if m:
        y = m.group(3)
        if y:
            year = 2000 + int(y) if len(y) == 2 else int(y)
        try:
            return datetime(year, int(m.group(1)), int(m.group(2)), tzinfo=timezone.utc)
        except ValueError:
            return None
    return None


def _parse_skip_rows(value) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    return int(str(value).strip())


def import_addresses(admin: Dict[str, Any], form: Dict[str, Any], text: Optional[str]) -> Tuple[int, Dict[str, Any]]:
    if not can_import(admin["role"]):
        return 403, {"error": "You do not have permission to import addresses"}
    slug = (form.get("campaignSlug") or "").strip()
    if text is None or not slug:
        return 400, {"error": "Missing file or campaign slug"}

    status = (form.get("status") or "confirmed").strip()
    if status not in IMPORT_STATUSES:
        return 400, {"error": "status must be pending, confirmed or shipped"}
    try:
        skip_rows = _parse_skip_rows(form.get("skipRows"))
    except ValueError:
        return 400, {"error": "skipRows must be a number"}

    campaign = get_campaign_by_slug(slug)
    if not campaign:
        return 404, {"error": "Campaign not found"}

    try:
        parsed, _ = parse_csv(text, skip_rows)
    except (ImportFormatError, csv.Error) as e:
        return 400, {"error": str(e)}

    default_shipped = parse_shipped_date(form.get("defaultShippedDate"))
    errors: List[str] = []
    candidates = []
    for line_no, row in parsed:
        if row is None:
            errors.append(f"Row {line_no}: missing name or address fields")
            continue
        row["address_fingerprint"] = address_fingerprint(
            row["first_name"],
            row["last_name"],
            row["address1"],
            row["city"],
            row["region"],
            row["postal_code"],
            row["country"],
        )
        candidates.append((line_no, row))

    seen = existing_fingerprints(r["address_fingerprint"] for _, r in candidates)
    imported = skipped = 0
    now = now_utc()
    for line_no, row in candidates:
        fp = row["address_fingerprint"]
        if fp in seen:
            skipped += 1
            continue

        shipped_at = None
        if status == "shipped":
            shipped_at = parse_shipped_date(row["shipped_date"]) or default_shipped or now
        fields = {k: v for k, v in row.items() if k != "shipped_date"}
        fields.update(
            {
                "campaign_id": campaign["id"],
                "status": "pending" if status == "pending" else "confirmed",
                "is_test_claim": False,
                "email_normalized": normalize_email(row["email"]) if row["email"] else None,
                "location_fingerprint": location_fingerprint(
                    row["address1"], row["city"], row["region"], row["postal_code"], row["country"]
                ),
                "confirmed_at": now if status != "pending" else None,
                "shipped_at": shipped_at,
            }
        )
        try:
            insert_claim(fields)
        except psycopg2.Error as e:
            errors.append(f"Row {line_no}: Database error - {e.pgerror or e}")
            continue
        seen.add(fp)
        imported += 1

    ADDRESSES_IMPORTED.labels(result="imported").inc(imported)
    ADDRESSES_IMPORTED.labels(result="skipped").inc(skipped)
    ADDRESSES_IMPORTED.labels(result="error").inc(len(errors))
    logger.info(
        "[import] %s: %d imported, %d skipped, %d errors by %s",
        slug,
        imported,
        skipped,
        len(errors),
        admin["id"],
    )
    return 200, {"imported": imported, "skipped": skipped, "errors": errors, "total": len(parsed)}
