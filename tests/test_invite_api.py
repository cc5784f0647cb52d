"""Tests for the invite-user function."""

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_admin_client

ADMIN_TOKEN = "token-super-admin"
COACH_TOKEN = "token-coach"


@pytest.fixture
def admin_client(fake_supabase):
    fake_supabase.auth.tokens[ADMIN_TOKEN] = "admin-1"
    fake_supabase.auth.tokens[COACH_TOKEN] = "coach-1"
    fake_supabase.seed("profiles", [
        {"id": "admin-1", "email": "root@club.ch", "role": "super_admin"},
        {"id": "coach-1", "email": "coach@club.ch", "role": "coach"},
    ])
    fake_supabase.seed("teams", [{"id": 1, "name": "U12"}, {"id": 2, "name": "U14"}])
    fake_supabase.seed("players", [
        {"id": 10, "team_id": 1, "full_name": "Ana", "user_id": None},
        {"id": 11, "team_id": 1, "full_name": "Bea", "user_id": "player-user"},
    ])
    app.dependency_overrides[get_admin_client] = lambda: fake_supabase
    yield TestClient(app)
    app.dependency_overrides.clear()


def _post(client, body, token=ADMIN_TOKEN, path="/api/invite-user"):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return client.post(path, json=body, headers=headers)


def _body(**overrides):
    body = {"email": "New.Coach@Club.ch", "role": "coach", "teamIds": [1, 2]}
    body.update(overrides)
    return body


def test_health(admin_client):
    assert admin_client.get("/api/health").json() == {"status": "healthy"}


def test_options_preflight(admin_client):
    response = admin_client.options("/invite-user")
    assert response.status_code == 200
    assert response.text == "ok"
    assert response.headers["access-control-allow-origin"] == "*"


def test_method_not_allowed(admin_client):
    response = admin_client.get("/api/invite-user")
    assert response.status_code == 405
    assert response.json() == {"ok": False, "error": "Method not allowed"}


@pytest.mark.parametrize("token,status,error", [
    (None, 401, "Authorization header required"),
    ("unknown-token", 401, "Invalid or expired token"),
    (COACH_TOKEN, 403, "Insufficient permissions. Super Admin role required."),
])
def test_caller_checks(admin_client, token, status, error):
    response = _post(admin_client, _body(), token=token)
    assert response.status_code == status
    assert response.json()["error"] == error


def test_invalid_json(admin_client):
    response = admin_client.post(
        "/api/invite-user",
        content="{not json",
        headers={"Authorization": f"Bearer {ADMIN_TOKEN}", "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON body"


@pytest.mark.parametrize("body,error", [
    (_body(email=""), "Missing required fields: email, role, and teamIds are required"),
    (_body(teamIds=[]), "Missing required fields: email, role, and teamIds are required"),
    (_body(role="super_admin"), 'Invalid role. Must be "coach", "admin", or "player"'),
    (_body(email="not-an-email"), "Invalid email format"),
    (_body(teamIds=[1, 99]), "One or more team IDs are invalid"),
    (_body(role="player", teamIds=[1]), "playerId is required for player invitations"),
    (_body(role="player", teamIds=[1], playerId=11), "This player already has a linked account"),
    (_body(role="player", teamIds=[1, 2], playerId=10), "Player must be assigned to their team only"),
])
def test_request_validation(admin_client, fake_supabase, body, error):
    response = _post(admin_client, body)
    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": error}
    assert fake_supabase.rows("pending_invites") == []


def test_unknown_player(admin_client):
    response = _post(admin_client, _body(role="player", teamIds=[1], playerId=404))
    assert response.status_code == 404
    assert response.json()["error"] == "Player not found"


def test_creates_user_link_and_invitation(admin_client, fake_supabase):
    response = _post(admin_client, _body(display_name="New Coach", redirectTo="https://app.club.ch"))
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert "type=recovery" in payload["action_link"]

    (created,) = fake_supabase.auth.admin.created_users
    assert created["email_confirm"] is True
    assert created["user_metadata"] == {"display_name": "New Coach"}

    (link,) = fake_supabase.auth.admin.generated_links
    assert link["options"]["redirect_to"] == "https://app.club.ch"

    (invite,) = fake_supabase.rows("pending_invites")
    assert invite["email"] == "new.coach@club.ch"
    assert invite["status"] == "pending"
    assert invite["team_ids"] == [1, 2]
    assert invite["created_by"] == "admin-1"
    assert "player_id" not in invite


def test_existing_user_is_not_created_again(admin_client, fake_supabase):
    response = _post(admin_client, _body(email="Coach@club.ch"))
    assert response.status_code == 200
    assert fake_supabase.auth.admin.created_users == []


def test_display_name_defaults_to_email_local_part(admin_client, fake_supabase):
    _post(admin_client, _body(email="kim@club.ch"))
    assert fake_supabase.auth.admin.created_users[0]["user_metadata"] == {"display_name": "kim"}


def test_repeated_invitation_updates_the_same_row(admin_client, fake_supabase):
    _post(admin_client, _body(role="coach"))
    _post(admin_client, _body(role="admin", teamIds=[2]))
    (invite,) = fake_supabase.rows("pending_invites")
    assert invite["role"] == "admin"
    assert invite["team_ids"] == [2]


def test_player_invitation_records_player(admin_client, fake_supabase):
    response = _post(admin_client, _body(email="ana@club.ch", role="player", teamIds=[1], playerId=10), path="/invite-user")
    assert response.status_code == 200
    assert fake_supabase.rows("pending_invites")[0]["player_id"] == 10


def test_user_creation_failure(admin_client, fake_supabase):
    fake_supabase.auth.admin.create_user_error = RuntimeError("email exists")
    response = _post(admin_client, _body())
    assert response.status_code == 500
    assert response.json()["error"] == "Failed to create user: email exists"


def test_link_failure(admin_client, fake_supabase):
    fake_supabase.auth.admin.generate_link_error = RuntimeError("smtp down")
    response = _post(admin_client, _body())
    assert response.status_code == 500
    assert response.json()["error"] == "Failed to generate invitation link: smtp down"
    assert fake_supabase.rows("pending_invites") == []


def test_team_lookup_failure(admin_client, fake_supabase):
    fake_supabase.failures[("teams", "select")] = RuntimeError("db down")
    response = _post(admin_client, _body())
    assert response.status_code == 500
    assert response.json()["error"] == "Failed to validate team IDs"


def test_invitation_record_failure(admin_client, fake_supabase):
    fake_supabase.failures[("pending_invites", "upsert")] = RuntimeError("constraint")
    response = _post(admin_client, _body())
    assert response.status_code == 500
    assert response.json()["error"] == "Failed to create invitation record: constraint"


def test_missing_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    app.dependency_overrides.clear()
    response = TestClient(app).post("/api/invite-user", json=_body())
    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Missing Supabase credentials"}
