"""Application roles and role-based navigation.

Roles live in ``profiles.role``. Access rules are plain membership checks
over the role enum; there is no hierarchy beyond what the sets below say.
"""

from enum import Enum
from typing import List, Optional


class AppRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    COACH = "coach"
    PLAYER = "player"


# Roles a super admin may hand out through the invite flow
INVITABLE_ROLES = ("coach", "admin", "player")

ADMIN_ROLES = frozenset({AppRole.SUPER_ADMIN.value})
COACH_ROLES = frozenset({AppRole.SUPER_ADMIN.value, AppRole.ADMIN.value, AppRole.COACH.value})
PLAYER_ROLES = frozenset({AppRole.PLAYER.value})

# section -> roles allowed to see it; None means every signed-in user
SECTION_ROLES = {
    "dashboard": None,
    "profile": None,
    "players": COACH_ROLES,
    "matches": COACH_ROLES,
    "trainings": COACH_ROLES,
    "statistics": COACH_ROLES,
    "evaluations": COACH_ROLES,
    "my_evaluations": PLAYER_ROLES,
    "admin": ADMIN_ROLES,
    "invitations": ADMIN_ROLES,
}

# Display order in the sidebar
SECTION_ORDER = [
    "dashboard",
    "players",
    "matches",
    "trainings",
    "statistics",
    "evaluations",
    "my_evaluations",
    "admin",
    "invitations",
    "profile",
]


def is_valid_app_role(role) -> bool:
    return role in {r.value for r in AppRole}


def _role_value(role) -> Optional[str]:
    if isinstance(role, AppRole):
        return role.value
    return role


def is_super_admin(role) -> bool:
    return _role_value(role) == AppRole.SUPER_ADMIN.value


def is_coach_or_above(role) -> bool:
    return _role_value(role) in COACH_ROLES


def can_access(role, section: str) -> bool:
    """Return True when ``role`` may open ``section``.

    Unknown sections are never accessible. Sections open to every signed-in
    user still require a valid role, except the profile page which is
    reachable even while the role could not be loaded.
    """
    if section not in SECTION_ROLES:
        return False
    role = _role_value(role)
    if section == "profile":
        return True
    if not is_valid_app_role(role):
        return False
    allowed = SECTION_ROLES[section]
    return allowed is None or role in allowed


def navigation_sections(role) -> List[str]:
    """Return the sections visible in the sidebar for ``role``, in display order."""
    return [section for section in SECTION_ORDER if can_access(role, section)]
