"""
Sidebar components for ClubManager
- User info card with sign out, shown on every page
- Team selector for the coach pages
"""
import logging

import streamlit as st

from data.auth import get_current_user, get_profile_cached, get_role, get_user_id, is_logged_in, sign_out
from data.roles import AppRole
from data.security import sanitize_html
from data.state_manager import get_selected_team_id, set_selected_team_id
from utils import db

logger = logging.getLogger(__name__)

ROLE_LABELS = {
    AppRole.SUPER_ADMIN.value: "Super Admin",
    AppRole.ADMIN.value: "Admin",
    AppRole.COACH.value: "Coach",
    AppRole.PLAYER.value: "Player",
}


def _create_user_info_card_html(user_name: str, user_email: str, role_label: str) -> str:
    """
    Creates HTML markup for the user info card.

    Values are escaped here; display names are user input.
    """
    return f"""
    <div style="
        background: linear-gradient(135deg, #1f7a4d 0%, #2c3e50 100%);
        padding: 16px;
        border-radius: 12px;
        margin-bottom: 16px;
        box-shadow: 0 4px 6px rgba(0,0,0,0.1);
    ">
        <div style="color: white; font-size: 16px; font-weight: 700; margin-bottom: 4px;">
            {sanitize_html(user_name)}
        </div>
        <div style="color: rgba(255,255,255,0.8); font-size: 13px;">
            {sanitize_html(user_email)}
        </div>
        <div style="color: rgba(255,255,255,0.9); font-size: 12px; margin-top: 8px;">
            {sanitize_html(role_label)}
        </div>
    </div>
    """


def render_sidebar_user_info() -> None:
    """
    Renders the user card and the sign out button at the top of the sidebar.
    """
    if not is_logged_in():
        return

    user = get_current_user() or {}
    profile = get_profile_cached() or {}
    role = get_role()

    with st.sidebar:
        st.markdown(
            _create_user_info_card_html(
                profile.get("display_name") or user.get("email", "User"),
                user.get("email", ""),
                ROLE_LABELS.get(role, "No role assigned"),
            ),
            unsafe_allow_html=True,
        )
        if st.button("🚪 Sign out", key="sidebar_logout", use_container_width=True, type="secondary"):
            sign_out()


def get_available_teams():
    """Teams the signed-in user can work on"""
    role = get_role()
    if role == AppRole.SUPER_ADMIN.value:
        return db.list_all_teams()
    if role in (AppRole.ADMIN.value, AppRole.COACH.value):
        return db.list_coach_teams(get_user_id())
    if role == AppRole.PLAYER.value:
        player = db.get_player_for_user(get_user_id())
        return db.get_teams_by_ids([player["team_id"]]) if player else []
    return []


def render_team_selector():
    """
    Renders the team selector in the sidebar and returns the selected team,
    or None when the user has no team.
    """
    try:
        teams = get_available_teams()
    except Exception as e:
        logger.error(f"Error loading teams: {e}")
        st.sidebar.error("Could not load teams.")
        return None

    if not teams:
        st.sidebar.info("No teams assigned yet.")
        return None

    team_ids = [t["id"] for t in teams]
    current = get_selected_team_id()
    index = team_ids.index(current) if current in team_ids else 0

    names = {t["id"]: t.get("name") or "Unnamed team" for t in teams}
    selected = st.sidebar.selectbox(
        "Team",
        options=team_ids,
        index=index,
        format_func=lambda team_id: names[team_id],
        key="sidebar_team_select",
    )
    set_selected_team_id(selected)
    return next(t for t in teams if t["id"] == selected)
