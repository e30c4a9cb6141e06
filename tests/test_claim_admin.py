import pytest

from claimkin.services import claim_admin_service
from claimkin.utils import permissions
from conftest import make_admin, make_campaign

ADA = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "address1": "12 Main St",
    "city": "Boston",
    "region": "MA",
    "postalCode": "02101",
    "country": "US",
}


class ClaimTable:
    """In-memory stand-in for the claim rows the admin endpoints touch."""

    def __init__(self, monkeypatch, *campaigns):
        self.campaigns = {c["id"]: c for c in campaigns}
        self.claims = {}
        self.roles = {}
        self.shipped = []
        self.broadcasts = []

        patches = {
            "get_campaign": self.campaigns.get,
            "get_claim": self.claims.get,
            "get_claims": lambda ids: [self.claims[i] for i in ids if i in self.claims],
            "insert_claim": self.insert_claim,
            "update_claim": self.update_claim,
            "delete_claim": lambda claim_id: self.claims.pop(claim_id, None),
            "delete_claims": lambda ids: sum(1 for i in ids if self.claims.pop(i, None)),
            "set_shipped": self.set_shipped,
            "person_claim_exists": lambda cid, fp: any(
                c["campaign_id"] == cid and c.get("address_fingerprint") == fp
                for c in self.claims.values()
            ),
            "count_capacity_used": lambda cid, include_test: sum(
                1 for c in self.claims.values() if c["campaign_id"] == cid
            ),
            "broadcast_claim_created": lambda cid, payload: self.broadcasts.append(payload),
        }
        for name, fn in patches.items():
            monkeypatch.setattr(claim_admin_service, name, fn)
        monkeypatch.setattr(
            permissions, "get_member_role", lambda cid, uid: self.roles.get((cid, uid))
        )

    def insert_claim(self, fields):
        row = dict(fields, id=f"claim-{len(self.claims) + 1}")
        self.claims[row["id"]] = row
        return row

    def update_claim(self, claim_id, **fields):
        self.claims[claim_id].update(fields)
        return self.claims[claim_id]

    def set_shipped(self, ids, shipped_at):
        self.shipped.append((ids, shipped_at))
        return len(ids)

    def add(self, campaign, **fields):
        return self.insert_claim(
            dict({"campaign_id": campaign["id"], "status": "pending", "address1": "1 Elm St"}, **fields)
        )


@pytest.fixture()
def campaign():
    return make_campaign(capacity_total=2)


@pytest.fixture()
def table(monkeypatch, campaign):
    return ClaimTable(monkeypatch, campaign)


def test_pre_create_reserves_a_spot(table, campaign, monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://kin.example.com/")
    admin = make_admin("admin")
    status, payload = claim_admin_service.pre_create(
        admin, campaign, {"first_name": "Grace", "email": "Grace@Example.com"}
    )
    assert status == 201
    claim = payload["claim"]
    assert claim["pre_created_by"] == admin["id"]
    assert claim["email_normalized"] == "grace@example.com"
    assert claim_admin_service.is_pre_created(claim)
    assert payload["claim_url"] == f"https://kin.example.com/c/spring-books/claim/{claim['claim_token']}"


def test_register_confirms_and_broadcasts(table, campaign):
    status, payload = claim_admin_service.register(make_admin("admin"), campaign, ADA)
    assert status == 201
    assert payload["claim"]["status"] == "confirmed"
    assert payload["claim"]["confirmed_at"] is not None
    assert payload["total_claimed"] == 1
    assert table.broadcasts[0]["count"] == 1


def test_register_rejects_duplicate_person(table, campaign):
    admin = make_admin("admin")
    assert claim_admin_service.register(admin, campaign, ADA)[0] == 201
    status, payload = claim_admin_service.register(admin, campaign, ADA)
    assert status == 409
    assert "Ada Lovelace" in payload["error"]


def test_register_enforces_capacity(table, campaign):
    table.add(campaign)
    table.add(campaign)
    status, payload = claim_admin_service.register(make_admin("admin"), campaign, ADA)
    assert (status, payload["error"]) == (400, "Campaign is at capacity")


def test_register_requires_address(table, campaign):
    body = dict(ADA, city="")
    assert claim_admin_service.register(make_admin("admin"), campaign, body)[0] == 400


def test_patch_sets_confirmed_at_once(table, campaign):
    claim = table.add(campaign)
    admin = make_admin("super_admin")

    status, payload = claim_admin_service.update(admin, claim["id"], {"status": "confirmed"})
    assert status == 200
    first = payload["claim"]["confirmed_at"]
    assert first is not None

    claim_admin_service.update(admin, claim["id"], {"status": "pending"})
    claim_admin_service.update(admin, claim["id"], {"status": "confirmed"})
    assert table.claims[claim["id"]]["confirmed_at"] == first


def test_patch_validation_and_access(table, campaign):
    claim = table.add(campaign)
    assert claim_admin_service.update(make_admin("super_admin"), claim["id"], {"status": "lost"})[0] == 400
    assert claim_admin_service.update(make_admin("super_admin"), "missing", {})[0] == 404
    assert claim_admin_service.update(make_admin("admin"), claim["id"], {"admin_notes": "x"})[0] == 403


def test_patch_updates_contact_and_shipping(table, campaign):
    claim = table.add(campaign)
    status, payload = claim_admin_service.update(
        make_admin("super_admin"), claim["id"], {"email": " Kin@Example.com ", "shipped_at": True}
    )
    assert status == 200
    assert payload["claim"]["email_normalized"] == "kin@example.com"
    assert payload["claim"]["shipped_at"] is not None


def test_delete_rules(table, campaign):
    editor, outsider = make_admin("admin"), make_admin("admin")
    table.roles[(campaign["id"], editor["id"])] = "editor"
    submitted = table.add(campaign)
    empty = table.add(campaign, claim_token="tok", address1=None)

    assert claim_admin_service.remove(outsider, submitted["id"])[0] == 403
    assert claim_admin_service.remove(outsider, empty["id"]) == (200, {"success": True})
    assert claim_admin_service.remove(editor, submitted["id"])[0] == 200
    assert table.claims == {}
    assert claim_admin_service.remove(editor, submitted["id"])[0] == 404


def test_super_admin_deletes_anything(table, campaign):
    claim = table.add(campaign)
    assert claim_admin_service.remove(make_admin("super_admin"), claim["id"])[0] == 200


def test_bulk_update_needs_every_campaign_editable(monkeypatch, campaign):
    other = make_campaign(slug="other")
    table = ClaimTable(monkeypatch, campaign, other)
    admin = make_admin("admin")
    table.roles[(campaign["id"], admin["id"])] = "editor"
    mine = table.add(campaign)
    theirs = table.add(other)

    status, _ = claim_admin_service.bulk_update(
        admin, {"claim_ids": [mine["id"], theirs["id"]], "shipped": True}
    )
    assert status == 403
    assert table.shipped == []

    status, payload = claim_admin_service.bulk_update(admin, {"claim_ids": [mine["id"]], "shipped": True})
    assert (status, payload) == (200, {"updated": 1})
    assert table.shipped[0][1] is not None


@pytest.mark.parametrize(
    "body",
    [{}, {"claim_ids": "claim-1", "shipped": True}, {"claim_ids": ["claim-1"]}],
)
def test_bulk_update_validation(table, body):
    assert claim_admin_service.bulk_update(make_admin("super_admin"), body)[0] == 400


def test_bulk_delete_is_super_admin_only(table, campaign):
    ids = [table.add(campaign)["id"], table.add(campaign)["id"]]
    assert claim_admin_service.bulk_delete(make_admin("admin"), {"claim_ids": ids})[0] == 403
    assert claim_admin_service.bulk_delete(make_admin("super_admin"), {"claim_ids": []})[0] == 400
    status, payload = claim_admin_service.bulk_delete(make_admin("super_admin"), {"claim_ids": ids})
    assert (status, payload) == (200, {"deleted": 2})
