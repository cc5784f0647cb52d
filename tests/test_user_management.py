"""Tests for the admin user management helpers."""

import pytest

from data import user_management


@pytest.fixture
def users(fake_supabase):
    fake_supabase.seed("profiles", [
        {"id": "u1", "email": "kim@club.ch", "display_name": "Kim Meier", "role": "coach", "created_at": "2024-01-01"},
        {"id": "u2", "email": "lea@club.ch", "display_name": "Lea Frei", "role": "player", "created_at": "2024-02-01"},
        {"id": "u3", "email": "max@club.ch", "display_name": None, "role": None, "created_at": "2024-03-01"},
    ])
    return fake_supabase


def test_list_users(users):
    assert [u["id"] for u in user_management.list_users()] == ["u3", "u2", "u1"]
    assert [u["id"] for u in user_management.list_users(role="coach")] == ["u1"]


def test_update_user_role(users):
    user_management.update_user_role("u2", "coach")
    assert users.rows("profiles")[1]["role"] == "coach"
    with pytest.raises(ValueError):
        user_management.update_user_role("u2", "owner")


def test_update_display_name(users):
    user_management.update_display_name("u3", "  Max Muster ")
    assert users.rows("profiles")[2]["display_name"] == "Max Muster"
    with pytest.raises(ValueError):
        user_management.update_display_name("u3", "   ")


def test_assignments(users):
    user_management.add_assignment("u1", 5, "coach")
    user_management.add_assignment("u9", 5, "admin")
    rows = {a["user_id"]: a for a in user_management.list_assignments(5)}
    assert rows["u1"]["display_name"] == "Kim Meier"
    assert rows["u9"]["display_name"] == "Unknown user"

    user_management.remove_assignment("u1", 5, "coach")
    assert [a["user_id"] for a in user_management.list_assignments(5)] == ["u9"]


def test_player_is_not_a_team_role(users):
    with pytest.raises(ValueError):
        user_management.add_assignment("u2", 5, "player")


def test_search_profiles(users):
    assert user_management.search_profiles("  ") == []
    assert users.calls == []
    assert [p["id"] for p in user_management.search_profiles(" lea ")] == ["u2"]
