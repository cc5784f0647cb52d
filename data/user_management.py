"""User management helpers.

Higher-level utilities for the admin pages. They build on the data access
functions in ``utils.db`` to list users, change roles and manage which
users hold a role on which team.
"""

import logging
from typing import Any, Dict, List, Optional

from data.roles import AppRole, is_valid_app_role
from utils import db

logger = logging.getLogger(__name__)

TEAM_ASSIGNMENT_ROLES = (AppRole.ADMIN.value, AppRole.COACH.value)


def list_users(role: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return all profiles, newest first, optionally restricted to one role."""
    return db.list_profiles(role=role)


def update_user_role(user_id: str, role: str) -> Optional[Dict[str, Any]]:
    """Change a user's application role.

    Raises:
        ValueError: When ``role`` is not one of the application roles.
    """
    if not is_valid_app_role(role):
        raise ValueError(f"Invalid role: {role}")
    logger.info(f"Changing role of user {user_id} to {role}")
    return db.update_profile(user_id, {"role": role})


def update_display_name(user_id: str, display_name: str) -> Optional[Dict[str, Any]]:
    display_name = (display_name or "").strip()
    if not display_name:
        raise ValueError("Display name cannot be empty")
    return db.update_profile(user_id, {"display_name": display_name})


def list_assignments(team_id) -> List[Dict[str, Any]]:
    """Team role assignments enriched with the user's display name."""
    assignments = db.list_team_assignments(team_id)
    names = db.get_display_names([a["user_id"] for a in assignments])
    return [
        {**a, "display_name": names.get(a["user_id"]) or "Unknown user"}
        for a in assignments
    ]


def add_assignment(user_id: str, team_id, role: str) -> Optional[Dict[str, Any]]:
    if role not in TEAM_ASSIGNMENT_ROLES:
        raise ValueError(f"Team role must be one of {TEAM_ASSIGNMENT_ROLES}")
    return db.add_team_assignment(user_id, team_id, role)


def remove_assignment(user_id: str, team_id, role: str):
    db.remove_team_assignment(user_id, team_id, role)


def search_profiles(text: str) -> List[Dict[str, Any]]:
    """Profiles whose display name contains ``text`` (case-insensitive), at most 20."""
    text = (text or "").strip()
    if not text:
        return []
    return db.search_profiles(text, limit=20)
