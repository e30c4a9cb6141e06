from __future__ import annotations
import logging
from typing import Any, Dict, Tuple

from claimkin.models.admin_user import get_admin_user, list_active_admins
from claimkin.models.campaign_member import (
    count_owners,
    get_member_role,
    list_members,
    remove_member,
    upsert_member,
)
from claimkin.utils.permissions import MEMBER_ROLES, get_campaign_access

logger = logging.getLogger(__name__)


def members(admin: Dict[str, Any], campaign: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "members": list_members(campaign["id"]),
        "available_admins": list_active_admins(),
        "can_manage": get_campaign_access(admin, campaign)["can_manage_members"],
    }


def _is_last_owner(campaign_id, user_id) -> bool:
    return get_member_role(campaign_id, user_id) == "owner" and count_owners(campaign_id) <= 1


def set_member(
    admin: Dict[str, Any], campaign: Dict[str, Any], body: Dict[str, Any], adding: bool
) -> Tuple[int, Dict[str, Any]]:
    """Add a member or change an existing member's role."""
    if not get_campaign_access(admin, campaign)["can_manage_members"]:
        verb = "add" if adding else "update"
        return 403, {"error": f"Only campaign owners can {verb} members"}
    user_id = body.get("user_id")
    role = body.get("role")
    if not user_id:
        return 400, {"error": "user_id is required"}
    if role not in MEMBER_ROLES:
        return 400, {"error": "Invalid role"}
    if not get_admin_user(user_id):
        return 404, {"error": "User not found"}
    if not adding and get_member_role(campaign["id"], user_id) is None:
        return 404, {"error": "Member not found"}
    if role != "owner" and _is_last_owner(campaign["id"], user_id):
        return 400, {"error": "Cannot demote the last owner"}

    member = upsert_member(campaign["id"], user_id, role, invited_by=admin["id"])
    logger.info(
        "[campaign] member %s set to %s on %s by %s", user_id, role, campaign["id"], admin["id"]
    )
    return 200, {"member": member}


def remove(admin: Dict[str, Any], campaign: Dict[str, Any], user_id) -> Tuple[int, Dict[str, Any]]:
    if not get_campaign_access(admin, campaign)["can_manage_members"]:
        return 403, {"error": "Only campaign owners can remove members"}
    if not user_id:
        return 400, {"error": "user_id is required"}
    if get_member_role(campaign["id"], user_id) is None:
        return 404, {"error": "Member not found"}
    if _is_last_owner(campaign["id"], user_id):
        return 400, {"error": "Cannot remove the last owner"}
    remove_member(campaign["id"], user_id)
    logger.info("[campaign] member %s removed from %s by %s", user_id, campaign["id"], admin["id"])
    return 200, {"success": True}
