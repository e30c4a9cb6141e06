"""
Campaign configuration history.

Every published change appends a version; at most one draft exists per
campaign and it always carries the next free version number. Publishing a
draft reuses that number.
"""

from __future__ import annotations
import logging
from datetime import date, datetime
from typing import Any, Dict, Tuple

from claimkin.models.campaign import CONFIG_FIELDS, update_campaign
from claimkin.models.campaign_version import (
    delete_drafts,
    get_draft,
    get_version,
    insert_version,
    list_versions,
    max_version_number,
    publish_version,
    update_draft,
)

logger = logging.getLogger(__name__)


def snapshot(source: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-safe copy of the versioned configuration fields present in source."""
    snap = {}
    for k in CONFIG_FIELDS:
        if k not in source:
            continue
        v = source[k]
        if isinstance(v, (datetime, date)):
            v = v.isoformat()
        snap[k] = v
    return snap


def history(campaign: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "versions": list_versions(campaign["id"]),
        "current_version": campaign.get("current_version") or 1,
        "has_draft": bool(campaign.get("has_draft")),
    }


def record_initial_version(campaign: Dict[str, Any], admin_id) -> Dict[str, Any]:
    return insert_version(
        campaign["id"], 1, "published", snapshot(campaign), "Initial version", admin_id
    )


def save_draft(
    campaign: Dict[str, Any], changes: Dict[str, Any], admin_id, change_summary=None
) -> Dict[str, Any]:
    """Create or overwrite the draft. The live configuration is left alone."""
    data = {**snapshot(campaign), **snapshot(changes)}
    draft = get_draft(campaign["id"])
    if draft:
        version = update_draft(draft["id"], data, change_summary, admin_id)
    else:
        number = max_version_number(campaign["id"]) + 1
        version = insert_version(
            campaign["id"], number, "draft", data, change_summary, admin_id
        )
    update_campaign(campaign["id"], has_draft=True, updated_by=admin_id)
    logger.info(
        "[campaign] draft v%s saved for %s by %s",
        version["version_number"],
        campaign["id"],
        admin_id,
    )
    return version


def publish_changes(
    campaign: Dict[str, Any], changes: Dict[str, Any], admin_id, change_summary=None
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Apply changes to the campaign and record them as a published version."""
    draft = get_draft(campaign["id"])
    number = (
        draft["version_number"] if draft else max_version_number(campaign["id"]) + 1
    )
    fields = {k: v for k, v in changes.items() if k in CONFIG_FIELDS}
    updated = update_campaign(
        campaign["id"],
        **fields,
        current_version=number,
        has_draft=False,
        updated_by=admin_id,
    )
    data = snapshot(updated)
    if draft:
        version = publish_version(draft["id"], admin_id, data=data, change_summary=change_summary)
    else:
        version = insert_version(
            campaign["id"], number, "published", data, change_summary, admin_id
        )
    logger.info("[campaign] v%s published for %s by %s", number, campaign["id"], admin_id)
    return updated, version


def publish_draft(campaign: Dict[str, Any], admin_id) -> Tuple[int, Dict[str, Any]]:
    draft = get_draft(campaign["id"])
    if not draft:
        return 404, {"error": "No draft to publish"}
    fields = {k: v for k, v in (draft["data"] or {}).items() if k in CONFIG_FIELDS}
    updated = update_campaign(
        campaign["id"],
        **fields,
        current_version=draft["version_number"],
        has_draft=False,
        updated_by=admin_id,
    )
    publish_version(draft["id"], admin_id)
    logger.info(
        "[campaign] draft v%s published for %s by %s",
        draft["version_number"],
        campaign["id"],
        admin_id,
    )
    return 200, {"campaign": updated, "version_number": draft["version_number"]}


def discard_draft(campaign: Dict[str, Any], admin_id) -> Tuple[int, Dict[str, Any]]:
    removed = delete_drafts(campaign["id"])
    update_campaign(campaign["id"], has_draft=False)
    if removed:
        logger.info("[campaign] draft discarded for %s by %s", campaign["id"], admin_id)
    return 200, {"success": True}


def revert(campaign: Dict[str, Any], version_number, admin_id) -> Tuple[int, Dict[str, Any]]:
    try:
        version_number = int(version_number)
    except (TypeError, ValueError):
        return 400, {"error": "version_number is required"}

    target = get_version(campaign["id"], version_number)
    if not target:
        return 404, {"error": "Version not found"}

    data = target["data"] or {}
    delete_drafts(campaign["id"])
    new_number = max_version_number(campaign["id"]) + 1
    fields = {k: v for k, v in data.items() if k in CONFIG_FIELDS}
    updated = update_campaign(
        campaign["id"],
        **fields,
        current_version=new_number,
        has_draft=False,
        updated_by=admin_id,
    )
    insert_version(
        campaign["id"],
        new_number,
        "published",
        data,
        f"Reverted to version {version_number}",
        admin_id,
    )
    logger.info(
        "[campaign] %s reverted to v%s (new v%s) by %s",
        campaign["id"],
        version_number,
        new_number,
        admin_id,
    )
    return 200, {
        "campaign": updated,
        "message": f"Reverted to version {version_number}",
        "new_version": new_number,
    }
