import logging

import pandas as pd
import streamlit as st

from data.auth import require_role
from data.roles import ADMIN_ROLES, AppRole
from data.user_management import (
    TEAM_ASSIGNMENT_ROLES,
    add_assignment,
    list_assignments,
    list_users,
    remove_assignment,
    search_profiles,
    update_user_role,
)
from utils import db
from utils.config import get_page_size
from utils.errors import log_error, map_supabase_error
from utils.formatting import format_date

logger = logging.getLogger(__name__)

require_role(*ADMIN_ROLES)

st.title("🛠️ Administration")

PAGE_SIZE = get_page_size()


def _fail(e, context):
    log_error(e, context)
    st.toast(f"❌ {map_supabase_error(e).message}")


def _page_range(key):
    page = st.number_input("Page", min_value=1, value=1, step=1, key=key)
    start = (int(page) - 1) * PAGE_SIZE
    return start, start + PAGE_SIZE - 1


sports_tab, clubs_tab, teams_tab, users_tab = st.tabs(["🏅 Sports", "🏟️ Clubs", "👕 Teams", "👤 Users"])

# === SPORTS ===
with sports_tab:
    start, end = _page_range("sports_page")
    try:
        sports = db.list_sports(start, end)
    except Exception as e:
        _fail(e, "list sports")
        sports = []
    for sport in sports:
        row = st.columns([4, 1])
        row[0].markdown(f"**{sport['name']}** · {format_date(sport.get('created_at'))}")
        if row[1].button("🗑️", key=f"delete_sport_{sport['id']}"):
            try:
                db.delete_sport(sport["id"])
            except Exception as e:
                _fail(e, "delete sport")
            else:
                st.rerun()
    with st.form("create_sport_form", clear_on_submit=True):
        name = st.text_input("New sport")
        if st.form_submit_button("Add sport") and name.strip():
            try:
                db.create_sport(name.strip())
            except Exception as e:
                _fail(e, "create sport")
            else:
                st.rerun()

# === CLUBS ===
with clubs_tab:
    try:
        all_sports = db.list_sports(0, 199)
    except Exception as e:
        _fail(e, "list sports")
        all_sports = []
    sport_names = {s["id"]: s["name"] for s in all_sports}

    start, end = _page_range("clubs_page")
    try:
        clubs = db.list_clubs(start, end)
    except Exception as e:
        _fail(e, "list clubs")
        clubs = []
    for club in clubs:
        row = st.columns([4, 1])
        row[0].markdown(f"**{club['name']}** · {sport_names.get(club.get('sport_id'), 'Unknown sport')}")
        if row[1].button("🗑️", key=f"delete_club_{club['id']}"):
            try:
                db.delete_club(club["id"])
            except Exception as e:
                _fail(e, "delete club")
            else:
                st.rerun()

    if sport_names:
        with st.form("create_club_form", clear_on_submit=True):
            name = st.text_input("New club")
            sport_id = st.selectbox("Sport", options=list(sport_names), format_func=sport_names.get)
            if st.form_submit_button("Add club") and name.strip():
                try:
                    db.create_club(name.strip(), sport_id)
                except Exception as e:
                    _fail(e, "create club")
                else:
                    st.rerun()
    else:
        st.caption("Create a sport first.")

# === TEAMS ===
with teams_tab:
    try:
        all_clubs = db.list_clubs(0, 199)
    except Exception as e:
        _fail(e, "list clubs")
        all_clubs = []
    club_names = {c["id"]: c["name"] for c in all_clubs}

    club_filter = st.selectbox(
        "Club", options=[None] + list(club_names),
        format_func=lambda cid: "All clubs" if cid is None else club_names[cid],
        key="teams_club_filter",
    )
    start, end = _page_range("teams_page")
    try:
        teams = db.list_teams(start, end, club_id=club_filter)
    except Exception as e:
        _fail(e, "list teams")
        teams = []

    for team in teams:
        with st.expander(f"{team['name']} · {club_names.get(team.get('club_id'), 'Unknown club')}"):
            try:
                assignments = list_assignments(team["id"])
            except Exception as e:
                _fail(e, "list assignments")
                assignments = []
            for a in assignments:
                row = st.columns([4, 1])
                row[0].markdown(f"{a['display_name']} · {a['role']}")
                if row[1].button("Remove", key=f"remove_{team['id']}_{a['user_id']}_{a['role']}"):
                    try:
                        remove_assignment(a["user_id"], team["id"], a["role"])
                    except Exception as e:
                        _fail(e, "remove assignment")
                    else:
                        st.rerun()

            query = st.text_input("Find user by name", key=f"assign_search_{team['id']}")
            matches = search_profiles(query) if query else []
            if matches:
                col1, col2, col3 = st.columns([3, 2, 1])
                user_id = col1.selectbox(
                    "User", options=[m["id"] for m in matches],
                    format_func=lambda uid: next(m["display_name"] or m["email"] for m in matches if m["id"] == uid),
                    key=f"assign_user_{team['id']}",
                )
                role = col2.selectbox("Role", options=list(TEAM_ASSIGNMENT_ROLES), key=f"assign_role_{team['id']}")
                if col3.button("Assign", key=f"assign_{team['id']}"):
                    try:
                        add_assignment(user_id, team["id"], role)
                    except Exception as e:
                        _fail(e, "add assignment")
                    else:
                        st.rerun()

            if st.button("Delete team", key=f"delete_team_{team['id']}"):
                try:
                    db.delete_team(team["id"])
                except Exception as e:
                    _fail(e, "delete team")
                else:
                    st.rerun()

    if club_names:
        with st.form("create_team_form", clear_on_submit=True):
            name = st.text_input("New team")
            club_id = st.selectbox("Club", options=list(club_names), format_func=club_names.get)
            if st.form_submit_button("Add team") and name.strip():
                try:
                    db.create_team(name.strip(), club_id)
                except Exception as e:
                    _fail(e, "create team")
                else:
                    st.rerun()
    else:
        st.caption("Create a club first.")

# === USERS ===
with users_tab:
    try:
        users = list_users()
    except Exception as e:
        _fail(e, "list users")
        users = []

    if users:
        st.dataframe(
            pd.DataFrame([{
                "Name": u.get("display_name"),
                "Email": u.get("email"),
                "Role": u.get("role") or "–",
                "Since": format_date(u.get("created_at")),
            } for u in users]),
            hide_index=True,
            use_container_width=True,
        )
        roles = [r.value for r in AppRole]
        with st.form("change_role_form"):
            user_id = st.selectbox(
                "User", options=[u["id"] for u in users],
                format_func=lambda uid: next(u.get("display_name") or u.get("email") for u in users if u["id"] == uid),
            )
            role = st.selectbox("New role", options=roles)
            if st.form_submit_button("Change role"):
                try:
                    update_user_role(user_id, role)
                except Exception as e:
                    _fail(e, "update role")
                else:
                    st.toast("✅ Role updated")
                    st.rerun()
