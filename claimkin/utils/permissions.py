"""
Role checks.

Global admin roles: super_admin | admin | viewer.
Per-campaign member roles: owner | editor | viewer.
"""

from __future__ import annotations
from typing import Any, Dict, Optional

from claimkin.models.campaign_member import get_member_role

ADMIN_ROLES = ("super_admin", "admin", "viewer")
MEMBER_ROLES = ("owner", "editor", "viewer")


def can_manage_users(role: str) -> bool:
    return role == "super_admin"


def can_create_campaign(role: str) -> bool:
    return role in ("super_admin", "admin")


def can_export(role: str) -> bool:
    return role in ("super_admin", "admin")


def can_import(role: str) -> bool:
    return role in ("super_admin", "admin")


def can_manage_invite_codes(role: str) -> bool:
    return role in ("super_admin", "admin")


def can_view_campaigns(role: str) -> bool:
    return role in ADMIN_ROLES


def access_for_role(admin: Dict[str, Any], member_role: Optional[str]) -> Dict[str, Any]:
    if admin.get("role") == "super_admin":
        return {
            "has_access": True,
            "role": "owner",
            "can_edit": True,
            "can_gift": True,
            "can_manage_members": True,
        }
    if member_role not in MEMBER_ROLES:
        return {
            "has_access": False,
            "role": None,
            "can_edit": False,
            "can_gift": False,
            "can_manage_members": False,
        }
    # a global viewer stays read-only whatever the membership says
    writable = admin.get("role") != "viewer"
    return {
        "has_access": True,
        "role": member_role,
        "can_edit": writable and member_role in ("owner", "editor"),
        "can_gift": writable and member_role in ("owner", "editor"),
        "can_manage_members": writable and member_role == "owner",
    }


def get_campaign_access(admin: Dict[str, Any], campaign: Dict[str, Any]) -> Dict[str, Any]:
    """
    Access flags for one admin on one campaign. The creator counts as an
    owner even when the membership row is missing.
    """
    if admin.get("role") == "super_admin":
        return access_for_role(admin, "owner")
    role = get_member_role(campaign["id"], admin["id"])
    if role is None and str(campaign.get("created_by")) == str(admin["id"]):
        role = "owner"
    return access_for_role(admin, role)
