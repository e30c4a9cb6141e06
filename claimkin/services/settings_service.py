from __future__ import annotations
import hmac
import logging
from typing import Any, Dict, Optional, Tuple

from claimkin.models.campaign import list_leaderboard_campaigns
from claimkin.models.global_setting import get_settings, list_settings, upsert_settings
from claimkin.utils.text import strip_html

logger = logging.getLogger(__name__)

PUBLIC_LEADERBOARD_SIZE = 10
LEADERBOARD_KEYS = ("leaderboard_enabled", "leaderboard_key", "leaderboard_title")


def all_settings():
    return list_settings()


def save_settings(admin: Dict[str, Any], body: Any) -> Tuple[int, Dict[str, Any]]:
    items = body.get("settings") if isinstance(body, dict) else None
    if not isinstance(items, list):
        return 400, {"error": "Settings must be an array"}
    items = [i for i in items if isinstance(i, dict) and i.get("key")]
    upsert_settings(items, admin["id"])
    logger.info("[settings] %d settings saved by %s", len(items), admin["id"])
    return 200, {"success": True}


def _rows(limit: Optional[int]):
    rows = list_leaderboard_campaigns()
    if limit is not None:
        rows = rows[:limit]
    return [
        {
            "rank": i + 1,
            "slug": r["slug"],
            "title": strip_html(r.get("title")),
            "claim_count": int(r["claim_count"]),
        }
        for i, r in enumerate(rows)
    ]


def public_leaderboard(key: Optional[str]) -> Tuple[int, Dict[str, Any]]:
    """Top campaigns by submitted claims, behind an on/off switch and a shared key."""
    cfg = get_settings(LEADERBOARD_KEYS)
    if cfg.get("leaderboard_enabled") != "true":
        return 404, {"error": "Leaderboard is not enabled"}
    expected = cfg.get("leaderboard_key") or ""
    if expected and not hmac.compare_digest(expected.encode("utf-8"), (key or "").encode("utf-8")):
        return 403, {"error": "Invalid leaderboard key"}
    return 200, {
        "title": cfg.get("leaderboard_title") or "Leaderboard",
        "campaigns": _rows(PUBLIC_LEADERBOARD_SIZE),
    }


def admin_leaderboard() -> Dict[str, Any]:
    cfg = get_settings(LEADERBOARD_KEYS)
    return {
        "enabled": cfg.get("leaderboard_enabled") == "true",
        "title": cfg.get("leaderboard_title") or "Leaderboard",
        "campaigns": _rows(None),
    }
