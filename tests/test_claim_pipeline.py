import uuid
from datetime import timedelta

import pytest

from claimkin.services import claim_service
from claimkin.utils.timezone import now_utc
from conftest import make_admin, make_campaign

ADA = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "Ada@Example.com",
    "address1": "12 Main St",
    "city": "Boston",
    "region": "MA",
    "postalCode": "02101",
    "country": "US",
    "consent": True,
}


def person(**overrides):
    body = dict(ADA)
    body.update(overrides)
    return body


class Store:
    """In-memory stand-in for the claim tables touched by the submission flow."""

    def __init__(self, monkeypatch, campaign):
        self.campaign = campaign
        self.claims = []
        self.answers = []
        self.invites = {}
        self.gift_codes = {}
        self.questions = []
        self.verifications = []
        self.sent = []
        self.broadcasts = []
        self.admins = {}

        patches = {
            "get_campaign_by_slug": lambda slug: self.campaign if slug == self.campaign["slug"] else None,
            "get_campaign": lambda cid: self.campaign if cid == self.campaign["id"] else None,
            "count_capacity_used": self.count_capacity_used,
            "count_ip_claims_since": lambda cid, ip_hash, since: sum(
                1 for c in self.claims if c.get("ip_hash") == ip_hash
            ),
            "person_claim_exists": self.person_claim_exists,
            "count_location_claims": lambda cid, fp: sum(
                1 for c in self.claims if c.get("location_fingerprint") == fp
            ),
            "count_email_claims": lambda cid, email: sum(
                1 for c in self.claims if c.get("email_normalized") == email
            ),
            "find_invite_code": lambda cid, code: self.invites.get(code.upper()),
            "consume_invite_code": self.consume_invite_code,
            "find_gift_code": lambda cid, code: self.gift_codes.get(code),
            "insert_claim": self.insert_claim,
            "update_claim": self.update_claim,
            "get_claim": lambda cid: next((c for c in self.claims if c["id"] == cid), None),
            "get_claim_by_token": lambda cid, token: next(
                (c for c in self.claims if c.get("claim_token") == token), None
            ),
            "insert_answers": lambda claim_id, rows: self.answers.extend(rows),
            "list_questions": lambda cid: self.questions,
            "get_settings": lambda keys: {},
            "get_admin_user": lambda admin_id: self.admins.get(admin_id),
            "broadcast_claim_created": lambda cid, payload: self.broadcasts.append(payload),
            "send_message": lambda to, message: self.sent.append((to, message)),
            "insert_verification": self.insert_verification,
            "find_open_verification": lambda token_hash: next(
                (v for v in self.verifications if v["token_hash"] == token_hash and not v["used"]),
                None,
            ),
            "mark_verification_used": self.mark_verification_used,
        }
        for name, fn in patches.items():
            monkeypatch.setattr(claim_service, name, fn)

    def count_capacity_used(self, campaign_id, include_test=False):
        return sum(
            1
            for c in self.claims
            if c["status"] in ("pending", "confirmed") and (include_test or not c["is_test_claim"])
        )

    def person_claim_exists(self, campaign_id, fingerprint, exclude_id=None):
        return any(
            c.get("address_fingerprint") == fingerprint and c["id"] != exclude_id for c in self.claims
        )

    def consume_invite_code(self, invite_id):
        for invite in self.invites.values():
            if invite["id"] == invite_id:
                if invite["max_uses"] is not None and invite["uses"] >= invite["max_uses"]:
                    return False
                invite["uses"] += 1
                return True
        return False

    def insert_claim(self, fields):
        claim = dict(fields, id=str(uuid.uuid4()))
        self.claims.append(claim)
        return claim

    def update_claim(self, claim_id, **fields):
        claim = next(c for c in self.claims if c["id"] == claim_id)
        claim.update(fields)
        return claim

    def insert_verification(self, claim_id, token_hash, expires_at):
        self.verifications.append(
            {
                "id": len(self.verifications) + 1,
                "claim_id": claim_id,
                "token_hash": token_hash,
                "expires_at": expires_at,
                "used": False,
            }
        )

    def mark_verification_used(self, verification_id):
        for v in self.verifications:
            if v["id"] == verification_id:
                v["used"] = True


@pytest.fixture()
def store(monkeypatch):
    return Store(monkeypatch, make_campaign())


def submit(store, body, ip="203.0.113.7"):
    return claim_service.submit_claim(store.campaign["slug"], body, ip, "pytest")


def test_successful_claim_is_confirmed_and_broadcast(store):
    status, payload = submit(store, person())
    assert status == 201
    assert payload["ok"] is True and payload["requires_verification"] is False
    claim = store.claims[0]
    assert claim["status"] == "confirmed"
    assert claim["email_normalized"] == "ada@example.com"
    assert claim["consent_given"] is True
    assert claim["ip_hash"] != "203.0.113.7"
    assert store.broadcasts[0]["count"] == 1
    assert store.broadcasts[0]["claim_id"] == claim["id"]


def test_same_person_twice_gets_friendly_message(store):
    submit(store, person())
    status, payload = submit(store, person(email="other@example.com"), ip="198.51.100.1")
    assert status == 400
    assert "already registered" in payload["error"]
    assert len(store.claims) == 1


def test_unknown_or_inactive_campaign(store):
    assert claim_service.submit_claim("nope", person(), "1.2.3.4", None)[0] == 404
    store.campaign["is_active"] = False
    assert submit(store, person())[0] == 404


@pytest.mark.parametrize(
    "field,value",
    [("consent", False), ("firstName", ""), ("postalCode", "2101")],
)
def test_rejected_submissions(store, field, value):
    status, _ = submit(store, person(**{field: value}))
    assert status == 400
    assert store.claims == []


def test_window_closed(store):
    store.campaign["starts_at"] = now_utc() + timedelta(days=1)
    assert submit(store, person())[1]["error"] == "Campaign has not started yet"
    store.campaign["starts_at"] = None
    store.campaign["ends_at"] = now_utc() - timedelta(minutes=1)
    assert submit(store, person())[1]["error"] == "Campaign has ended"


def test_capacity_counts_only_live_claims(store):
    store.campaign["capacity_total"] = 1
    store.claims.append({"id": "x", "status": "rejected", "is_test_claim": False})
    store.claims.append({"id": "y", "status": "confirmed", "is_test_claim": True})
    assert submit(store, person())[0] == 201
    status, payload = submit(store, person(firstName="Bob"), ip="198.51.100.1")
    assert status == 400 and payload["error"] == "Campaign is at capacity"


def test_ip_limit_returns_429(store):
    store.campaign["max_claims_per_ip_per_day"] = 1
    assert submit(store, person())[0] == 201
    assert submit(store, person(firstName="Bob", email="bob@example.com"))[0] == 429


def test_address_and_email_limits(store):
    store.campaign["max_claims_per_address"] = 1
    submit(store, person())
    status, payload = submit(store, person(firstName="Bob", email=None), ip="198.51.100.1")
    assert status == 400 and "maximum of 1 person" in payload["error"]

    store.campaign["max_claims_per_address"] = None
    status, payload = submit(store, person(firstName="Bob"), ip="198.51.100.2")
    assert payload["error"] == "This email has already been used for this campaign"


def test_invite_code_checked_and_consumed_last(store):
    store.campaign["require_invite_code"] = True
    store.invites["KIN"] = {"id": 1, "code": "KIN", "is_active": True, "max_uses": 1, "uses": 0}

    assert submit(store, person())[1]["error"] == "Invite code is required"
    assert submit(store, person(inviteCode="nope"))[1]["error"] == "Invalid invite code"

    # a neighbour already claimed at this address
    store.campaign["max_claims_per_address"] = 1
    neighbour = claim_service.address_fields(claim_service.read_claim_input(person(firstName="Eve")))
    store.claims.append(
        {
            "id": "z",
            "status": "confirmed",
            "is_test_claim": False,
            "location_fingerprint": neighbour["location_fingerprint"],
        }
    )
    assert submit(store, person(inviteCode="kin"))[0] == 400
    assert store.invites["KIN"]["uses"] == 0

    store.claims.clear()
    status, _ = submit(store, person(inviteCode="kin"))
    assert status == 201
    assert store.invites["KIN"]["uses"] == 1
    assert store.claims[0]["invite_code"] == "KIN"
    assert submit(store, person(firstName="Bob", inviteCode="KIN"), ip="198.51.100.1")[1]["error"] == (
        "Invite code has reached maximum uses"
    )


def test_required_question_must_be_answered(store):
    store.campaign["enable_questions"] = True
    store.questions = [
        {"id": 7, "question_text": "Favourite chapter?", "is_required": True},
        {"id": 8, "question_text": "Topics", "is_required": False},
    ]
    status, payload = submit(store, person())
    assert status == 400 and payload["error"] == "Please answer: Favourite chapter?"

    status, _ = submit(store, person(answers={"7": "Three", "8": ["minds", "kin"]}))
    assert status == 201
    assert store.answers[0] == {"question_id": 7, "answer_text": "Three", "answer_option": "Three"}
    assert store.answers[1] == {"question_id": 8, "answer_text": '["minds", "kin"]'}


def test_verification_flow(store):
    store.campaign["require_email_verification"] = True
    status, payload = submit(store, person())
    assert status == 201 and payload["requires_verification"] is True
    assert store.claims[0]["status"] == "pending"

    to, message = store.sent[0]
    assert to == "Ada@Example.com"
    token = message["body_text"].split("token=")[1].split()[0]

    status, payload = claim_service.verify_email(token)
    assert status == 200 and payload["status"] == "confirmed"
    assert store.claims[0]["confirmed_at"] is not None
    assert claim_service.verify_email(token)[0] == 404


def test_expired_verification(store):
    store.campaign["require_email_verification"] = True
    submit(store, person())
    token = store.sent[0][1]["body_text"].split("token=")[1].split()[0]
    store.verifications[0]["expires_at"] = now_utc() - timedelta(seconds=1)
    assert claim_service.verify_email(token)[0] == 410
    assert claim_service.verify_email("")[0] == 400


def test_gift_code_links_gifter_and_emails_recipient(store):
    gifter = make_admin("admin", display_name="Grace H", linkedin_url="https://www.linkedin.com/in/grace")
    store.admins[gifter["id"]] = gifter
    store.gift_codes["GIFT1"] = {"code": "GIFT1", "admin_id": gifter["id"]}

    assert submit(store, person(giftCode="BOGUS"))[1]["error"] == "Invalid gift code"
    status, _ = submit(store, person(giftCode="GIFT1"))
    assert status == 201
    assert store.claims[0]["pre_created_by"] == gifter["id"]
    assert len(store.sent) == 1


def test_pre_created_claim_completion(store):
    gifter = make_admin("admin", name="Grace Hopper")
    store.admins[gifter["id"]] = gifter
    store.claims.append(
        {
            "id": "pre-1",
            "claim_token": "tok",
            "status": "pending",
            "is_test_claim": False,
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",
            "address1": None,
            "pre_created_by": gifter["id"],
            "gift_note_to_recipient": "Enjoy!",
        }
    )

    status, payload = claim_service.pre_created_prefill(store.campaign["slug"], "tok")
    assert status == 200
    assert payload["prefill"]["first_name"] == "Ada"
    assert payload["gifter_name"] == "Grace Hopper"
    assert payload["note"] == "Enjoy!"

    status, payload = submit(store, person(claimToken="tok", email=None))
    assert status == 200 and payload["claim_id"] == "pre-1"
    claim = store.claims[0]
    assert claim["status"] == "confirmed"
    assert claim["address1"] == "12 Main St"
    assert claim["email"] == "ada@example.com"
    assert store.sent and store.sent[0][0] == "ada@example.com"

    assert submit(store, person(claimToken="tok"))[1]["error"] == "This claim has already been submitted"
    assert claim_service.pre_created_prefill(store.campaign["slug"], "tok")[0] == 400
    assert submit(store, person(claimToken="missing"))[0] == 404


def test_public_campaign_shows_remaining_only_with_scarcity(store):
    store.campaign.update(capacity_total=10, show_scarcity=True, description="Books")
    submit(store, person())
    status, payload = claim_service.public_campaign(store.campaign["slug"])
    assert status == 200
    assert payload["campaign"]["remaining"] == 9
    assert payload["campaign"]["state"] == "open"
    assert payload["campaign"]["questions"] == []

    store.campaign["show_scarcity"] = False
    assert "remaining" not in claim_service.public_campaign(store.campaign["slug"])[1]["campaign"]
