import io

import pytest

from claimkin.routes import auth_routes
from claimkin.services import auth_service, claim_service, import_service, settings_service
from claimkin.utils import opengraph
from conftest import make_admin, make_campaign


def test_ping(client):
    resp = client.get("/__ping")
    assert resp.status_code == 200
    assert resp.get_json() == {"ok": True, "service": "claimkin-api"}


def test_admin_routes_need_a_token(client):
    resp = client.get("/api/admin/me")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "unauthorized"


def test_me_returns_loaded_admin(client, login):
    admin = make_admin("viewer")
    resp = client.get("/api/admin/me", headers=login(admin))
    assert resp.status_code == 200
    assert resp.get_json()["admin"]["email"] == "viewer@example.com"


def test_deactivated_admin_is_locked_out(client, login):
    admin = make_admin("admin")
    headers = login(admin)
    admin["is_active"] = False
    assert client.get("/api/admin/me", headers=headers).status_code == 403


def test_role_restricted_route(client, login, monkeypatch):
    monkeypatch.setattr(settings_service, "upsert_settings", lambda items, admin_id: None)
    headers = login(make_admin("viewer"))
    resp = client.put("/api/admin/global-settings", json={"settings": []}, headers=headers)
    assert resp.status_code == 403


def test_logout_revokes_token(client, login, fake_redis):
    headers = login(make_admin("admin"))
    resp = client.post("/api/admin/auth/logout", headers=headers)
    assert resp.status_code == 200
    assert any(k.startswith("jwt:revoked:") for k in fake_redis.store)

    resp = client.get("/api/admin/me", headers=headers)
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "token revoked"


def test_refresh_issues_new_access_token(client, login, monkeypatch):
    admin = make_admin("admin")
    monkeypatch.setattr(auth_routes, "get_admin_user", lambda admin_id: admin)
    resp = client.post("/api/admin/auth/refresh", headers=login(admin, refresh=True))
    assert resp.status_code == 200
    token = resp.get_json()["access_token"]

    resp = client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200


def test_request_otp_for_unknown_email(client, monkeypatch):
    monkeypatch.setattr(auth_service, "get_admin_by_email", lambda email: None)
    resp = client.post("/api/admin/auth/request-otp", json={"email": "who@example.com"})
    assert resp.status_code == 200
    assert resp.get_json() == {"ok": True}


def test_metrics_exposed_to_admins(client, login):
    resp = client.get("/admin/metrics", headers=login(make_admin("viewer")))
    assert resp.status_code == 200
    assert b"claimkin_claims_submitted_total" in resp.data


@pytest.mark.parametrize(
    "settings,key,status",
    [
        ({}, None, 404),
        ({"leaderboard_enabled": "false"}, None, 404),
        ({"leaderboard_enabled": "true", "leaderboard_key": "s3cret"}, "guess", 403),
        ({"leaderboard_enabled": "true", "leaderboard_key": "s3cret"}, "s3cret", 200),
        ({"leaderboard_enabled": "true", "leaderboard_key": "s3cret"}, "é", 403),
        ({"leaderboard_enabled": "true", "leaderboard_key": "clé"}, "clé", 200),
        ({"leaderboard_enabled": "true"}, None, 200),
    ],
)
def test_public_leaderboard_gate(client, monkeypatch, settings, key, status):
    monkeypatch.setattr(settings_service, "get_settings", lambda keys: settings)
    monkeypatch.setattr(
        settings_service,
        "list_leaderboard_campaigns",
        lambda: [{"slug": f"c{i}", "title": f"<b>C{i}</b>", "claim_count": 20 - i} for i in range(12)],
    )
    resp = client.get("/api/leaderboard", query_string={"key": key} if key else None)
    assert resp.status_code == status
    if status == 200:
        body = resp.get_json()
        assert len(body["campaigns"]) == 10
        assert body["campaigns"][0] == {"rank": 1, "slug": "c0", "title": "C0", "claim_count": 20}


def test_opengraph_validation(client, login):
    headers = login(make_admin("admin"))
    assert client.get("/api/admin/opengraph", headers=headers).status_code == 400
    resp = client.get("/api/admin/opengraph?url=javascript:alert(1)", headers=headers)
    assert resp.status_code == 400


def test_opengraph_fetches_once(client, login, monkeypatch):
    calls = []

    class Page:
        ok = True
        status_code = 200
        text = '<meta property="og:title" content="Kin">'

    def fake_get(url, **kwargs):
        calls.append(url)
        return Page()

    monkeypatch.setattr(opengraph.requests, "get", fake_get)
    headers = login(make_admin("admin"))
    for _ in range(2):
        resp = client.get("/api/admin/opengraph?url=https://example.com/book", headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["title"] == "Kin"
    assert calls == ["https://example.com/book"]


def test_public_claim_for_missing_campaign(client, monkeypatch):
    monkeypatch.setattr(claim_service, "get_campaign_by_slug", lambda slug: None)
    resp = client.post("/api/campaigns/nope/claim", json={"firstName": "Ada"})
    assert resp.status_code == 404


def test_verify_needs_token(client):
    resp = client.get("/api/verify")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Missing token"}


def test_csv_upload(client, login, monkeypatch):
    inserted = []
    monkeypatch.setattr(import_service, "get_campaign_by_slug", lambda slug: make_campaign(slug=slug))
    monkeypatch.setattr(import_service, "existing_fingerprints", lambda fps: set())
    monkeypatch.setattr(import_service, "insert_claim", inserted.append)

    csv_bytes = (
        "\ufefffirstName,lastName,address1,city,region,postalCode\n"
        "Ada,Lovelace,12 Main St,Boston,MA,02101\n"
    ).encode("utf-8")
    resp = client.post(
        "/api/admin/addresses/import",
        data={"file": (io.BytesIO(csv_bytes), "kin.csv"), "campaignSlug": "spring-books"},
        content_type="multipart/form-data",
        headers=login(make_admin("admin")),
    )
    assert resp.status_code == 200
    assert resp.get_json() == {"imported": 1, "skipped": 0, "errors": [], "total": 1}
    assert inserted[0]["first_name"] == "Ada"


def test_json_body_must_be_an_object(client, login):
    resp = client.post("/api/campaigns/spring-books/claim", json=["Ada", "Lovelace"])
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Request body must be a JSON object"}

    headers = login(make_admin("super_admin"))
    resp = client.post("/api/admin/claims/bulk-delete", json=[1, 2], headers=headers)
    assert resp.status_code == 400
