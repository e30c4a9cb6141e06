import pytest

from claimkin.utils import permissions
from claimkin.utils.permissions import access_for_role, get_campaign_access
from conftest import make_admin, make_campaign


@pytest.mark.parametrize(
    "role,manage_users,create,export",
    [
        ("super_admin", True, True, True),
        ("admin", False, True, True),
        ("viewer", False, False, False),
    ],
)
def test_global_roles(role, manage_users, create, export):
    assert permissions.can_manage_users(role) is manage_users
    assert permissions.can_create_campaign(role) is create
    assert permissions.can_export(role) is export
    assert permissions.can_import(role) is export
    assert permissions.can_manage_invite_codes(role) is create
    assert permissions.can_view_campaigns(role)


def test_super_admin_is_owner_everywhere(monkeypatch):
    monkeypatch.setattr(permissions, "get_member_role", lambda *a: pytest.fail("no lookup"))
    access = get_campaign_access(make_admin("super_admin"), make_campaign())
    assert access == {
        "has_access": True,
        "role": "owner",
        "can_edit": True,
        "can_gift": True,
        "can_manage_members": True,
    }


def test_member_roles():
    admin = make_admin("admin")
    owner = access_for_role(admin, "owner")
    editor = access_for_role(admin, "editor")
    viewer = access_for_role(admin, "viewer")
    assert owner["can_manage_members"] and owner["can_edit"]
    assert editor["can_edit"] and editor["can_gift"] and not editor["can_manage_members"]
    assert viewer["has_access"] and not viewer["can_edit"] and not viewer["can_gift"]


def test_non_member_has_no_access():
    access = access_for_role(make_admin("admin"), None)
    assert access["has_access"] is False
    assert access["role"] is None


def test_global_viewer_never_writes():
    access = access_for_role(make_admin("viewer"), "owner")
    assert access["has_access"]
    assert not access["can_edit"]
    assert not access["can_gift"]
    assert not access["can_manage_members"]


def test_creator_counts_as_owner_without_membership(monkeypatch):
    admin = make_admin("admin")
    campaign = make_campaign(created_by=admin["id"])
    monkeypatch.setattr(permissions, "get_member_role", lambda cid, uid: None)
    assert get_campaign_access(admin, campaign)["role"] == "owner"


def test_membership_role_wins_over_creator(monkeypatch):
    admin = make_admin("admin")
    campaign = make_campaign(created_by=admin["id"])
    monkeypatch.setattr(permissions, "get_member_role", lambda cid, uid: "editor")
    assert get_campaign_access(admin, campaign)["role"] == "editor"
