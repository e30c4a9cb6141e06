import pytest

from claimkin.services import campaign_content_service as content
from claimkin.utils import permissions
from conftest import make_admin, make_campaign


class ContentTable:
    def __init__(self, monkeypatch):
        self.codes = {}
        self.questions = {}
        self.roles = {}

        patches = {
            "find_invite_code": lambda cid, code: next(
                (c for c in self.codes.values() if c["campaign_id"] == cid and c["code"] == code), None
            ),
            "get_invite_code": self.codes.get,
            "insert_invite_code": self.insert_invite_code,
            "set_invite_code_active": self.set_invite_code_active,
            "delete_invite_code": lambda code_id: self.codes.pop(code_id, None) is not None,
            "get_question": self.questions.get,
            "insert_question": self.insert_question,
            "update_question": self.update_question,
            "delete_question": lambda qid: self.questions.pop(qid, None) is not None,
        }
        for name, fn in patches.items():
            monkeypatch.setattr(content, name, fn)
        monkeypatch.setattr(
            permissions, "get_member_role", lambda cid, uid: self.roles.get((cid, uid))
        )

    def insert_invite_code(self, campaign_id, code, max_uses, created_by):
        row = {
            "id": f"code-{len(self.codes) + 1}",
            "campaign_id": campaign_id,
            "code": code,
            "max_uses": max_uses,
            "is_active": True,
        }
        self.codes[row["id"]] = row
        return row

    def set_invite_code_active(self, code_id, is_active):
        self.codes[code_id]["is_active"] = is_active
        return self.codes[code_id]

    def insert_question(self, campaign_id, question_text, question_type, options, is_required):
        row = {
            "id": f"q-{len(self.questions) + 1}",
            "campaign_id": campaign_id,
            "question_text": question_text,
            "question_type": question_type,
            "options": options,
            "is_required": is_required,
        }
        self.questions[row["id"]] = row
        return row

    def update_question(self, question_id, **fields):
        self.questions[question_id].update(fields)
        return self.questions[question_id]


@pytest.fixture()
def table(monkeypatch):
    return ContentTable(monkeypatch)


@pytest.fixture()
def campaign():
    return make_campaign()


@pytest.fixture()
def boss():
    return make_admin("super_admin")


def test_invite_code_is_upper_cased(table, campaign, boss):
    status, payload = content.create_invite_code(boss, campaign, {"code": "  vip-2025 ", "max_uses": "3"})
    assert status == 201
    assert payload["invite_code"]["code"] == "VIP-2025"
    assert payload["invite_code"]["max_uses"] == 3


def test_duplicate_code_is_refused(table, campaign, boss):
    content.create_invite_code(boss, campaign, {"code": "VIP"})
    status, payload = content.create_invite_code(boss, campaign, {"code": "vip"})
    assert (status, payload["error"]) == (400, "This code already exists for this campaign")


@pytest.mark.parametrize(
    "max_uses,status",
    [(None, 201), ("", 201), (0, 400), ("-2", 400), ("many", 400), (1, 201)],
)
def test_invite_code_max_uses(table, campaign, boss, max_uses, status):
    assert content.create_invite_code(boss, campaign, {"code": "VIP", "max_uses": max_uses})[0] == status


def test_invite_code_needs_code(table, campaign, boss):
    assert content.create_invite_code(boss, campaign, {"code": " "})[0] == 400


def test_code_management_needs_global_role_and_edit_access(table, campaign):
    editor = make_admin("admin")
    table.roles[(campaign["id"], editor["id"])] = "editor"
    viewer_owner = make_admin("viewer")
    table.roles[(campaign["id"], viewer_owner["id"])] = "owner"
    outsider = make_admin("admin")

    assert content.create_invite_code(editor, campaign, {"code": "A"})[0] == 201
    assert content.create_invite_code(viewer_owner, campaign, {"code": "B"})[0] == 403
    assert content.create_invite_code(outsider, campaign, {"code": "C"})[0] == 403


def test_toggle_and_delete_code(table, campaign, boss):
    code = content.create_invite_code(boss, campaign, {"code": "VIP"})[1]["invite_code"]

    assert content.toggle_invite_code(boss, campaign, code["id"], {})[0] == 400
    status, payload = content.toggle_invite_code(boss, campaign, code["id"], {"is_active": False})
    assert status == 200 and payload["invite_code"]["is_active"] is False

    assert content.remove_invite_code(boss, campaign, code["id"]) == (200, {"success": True})
    assert content.remove_invite_code(boss, campaign, code["id"])[0] == 404


def test_code_from_another_campaign_is_not_found(table, campaign, boss):
    other = make_campaign(slug="other")
    code = content.create_invite_code(boss, other, {"code": "VIP"})[1]["invite_code"]
    assert content.toggle_invite_code(boss, campaign, code["id"], {"is_active": False})[0] == 404
    assert content.remove_invite_code(boss, campaign, code["id"])[0] == 404
    assert code["id"] in table.codes


def test_create_question(table, campaign, boss):
    status, payload = content.create_question(
        boss,
        campaign,
        {
            "question_text": "Favourite genre?",
            "question_type": "multiple_choice",
            "options": [" Sci-fi ", "", "Poetry"],
            "is_required": True,
        },
    )
    assert status == 201
    assert payload["question"]["options"] == ["Sci-fi", "Poetry"]
    assert payload["question"]["is_required"] is True

    status, payload = content.create_question(boss, campaign, {"question_text": "Anything else?"})
    assert status == 201
    assert payload["question"]["question_type"] == "text"
    assert payload["question"]["options"] is None


@pytest.mark.parametrize(
    "body",
    [
        {"question_text": ""},
        {"question_text": "Q", "question_type": "essay"},
        {"question_text": "Q", "question_type": "checkboxes"},
        {"question_text": "Q", "question_type": "checkboxes", "options": ["Only one", " "]},
    ],
)
def test_create_question_validation(table, campaign, boss, body):
    assert content.create_question(boss, campaign, body)[0] == 400


def test_questions_need_edit_access(table, campaign):
    viewer = make_admin("admin")
    table.roles[(campaign["id"], viewer["id"])] = "viewer"
    assert content.create_question(viewer, campaign, {"question_text": "Q"})[0] == 403


def test_patch_type_change_rechecks_options(table, campaign, boss):
    q = content.create_question(boss, campaign, {"question_text": "Why?"})[1]["question"]

    status, payload = content.patch_question(boss, campaign, q["id"], {"question_type": "checkboxes"})
    assert (status, payload["error"]) == (400, "Options are required for choice questions")

    status, payload = content.patch_question(
        boss, campaign, q["id"], {"question_type": "checkboxes", "options": ["Yes", "No"]}
    )
    assert status == 200
    assert payload["question"]["options"] == ["Yes", "No"]

    status, payload = content.patch_question(boss, campaign, q["id"], {"question_type": "text"})
    assert status == 200
    assert payload["question"]["options"] is None


def test_patch_fields(table, campaign, boss):
    q = content.create_question(boss, campaign, {"question_text": "Why?"})[1]["question"]
    status, payload = content.patch_question(
        boss, campaign, q["id"], {"question_text": " How? ", "is_required": 1, "display_order": "4"}
    )
    assert status == 200
    assert payload["question"]["question_text"] == "How?"
    assert payload["question"]["is_required"] is True
    assert payload["question"]["display_order"] == 4
    assert content.patch_question(boss, campaign, q["id"], {"display_order": "last"})[0] == 400


def test_question_from_another_campaign_is_not_found(table, campaign, boss):
    other = make_campaign(slug="other")
    q = content.create_question(boss, other, {"question_text": "Why?"})[1]["question"]
    assert content.patch_question(boss, campaign, q["id"], {"question_text": "Hm"})[0] == 404
    assert content.remove_question(boss, campaign, q["id"])[0] == 404
    assert content.remove_question(boss, other, q["id"]) == (200, {"success": True})
    assert table.questions == {}
