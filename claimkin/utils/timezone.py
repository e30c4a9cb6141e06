"""
Campaign windows are entered by admins as Eastern wall-clock time
(datetime-local inputs without an offset) and stored in UTC.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

EASTERN = ZoneInfo("America/New_York")
LOCAL_FORMAT = "%Y-%m-%dT%H:%M"


def utc_to_eastern(value) -> Optional[str]:
    """UTC timestamp to an Eastern datetime-local string (05:00Z -> 00:00 in winter)."""
    if not value:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(EASTERN).strftime(LOCAL_FORMAT)


def eastern_to_utc(local_value: str) -> datetime:
    """Eastern datetime-local string to an aware UTC datetime."""
    naive = datetime.fromisoformat(local_value)
    return naive.replace(tzinfo=EASTERN).astimezone(timezone.utc)


def parse_campaign_datetime(value) -> Optional[datetime]:
    """
    Accept an ISO timestamp with an offset (taken as-is) or a datetime-local
    value without one (taken as Eastern). Empty values clear the field.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip()
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return eastern_to_utc(text)
    return parsed.astimezone(timezone.utc)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)
