"""pages.invitations

Super admins invite coaches, admins and players here. Creating an
invitation returns a link that the admin shares with the new user; the list
below shows earlier invitations and lets pending ones be canceled.
"""

import logging

import pandas as pd
import streamlit as st

from data.auth import get_access_token, require_role
from data.roles import ADMIN_ROLES, INVITABLE_ROLES, AppRole
from data.state_manager import count_invite_failure, get_invite_retry_request, reset_invite_attempts, set_invite_retry_request
from data.security import is_valid_email
from utils import db, invites
from utils.config import get_page_size, get_redirect_url
from utils.formatting import format_date
from utils.invitation_errors import (
    get_error_toast_message,
    get_loading_toast_message,
    get_success_toast_message,
    map_invitation_error,
    should_retry_invitation,
)

logger = logging.getLogger(__name__)

require_role(*ADMIN_ROLES)

st.title("✉️ Invitations")

STATUS_LABELS = {"pending": "🟡 Pending", "accepted": "🟢 Accepted", "canceled": "⚪ Canceled"}


def _show_error(request, error):
    """Map a service error, count the attempt and offer a retry while allowed."""
    mapped = map_invitation_error(error)
    attempts = count_invite_failure()
    set_invite_retry_request(request if should_retry_invitation(mapped, attempts) else None)
    toast = get_error_toast_message(mapped, attempts)
    st.error(f"**{toast['title']}**  \n{toast['description']}")
    if mapped.user_action:
        st.caption(mapped.user_action)


def _send_invitation(request):
    with st.spinner(get_loading_toast_message("create")["description"]):
        data, error = invites.create_invitation(request, get_access_token())
    if error:
        _show_error(request, error)
        return
    reset_invite_attempts()
    toast = get_success_toast_message(request["email"], request["role"])
    st.success(f"**{toast['title']}**  \n{toast['description']}")
    st.code(data["action_link"], language=None)


try:
    teams = db.list_all_teams()
except Exception as e:
    logger.error(f"Error loading teams: {e}")
    teams = []
team_names = {t["id"]: t["name"] for t in teams}

create_tab, list_tab = st.tabs(["➕ Invite user", "📋 Invitations"])

# === INVITE ===
with create_tab:
    role = st.selectbox("Role", options=list(INVITABLE_ROLES), key="invite_role")
    player_id = None
    if role == AppRole.PLAYER.value:
        team_id = st.selectbox("Team", options=list(team_names), format_func=team_names.get, key="invite_player_team")
        try:
            unlinked = [p for p in db.list_players(team_id) if not p.get("user_id")] if team_id else []
        except Exception as e:
            logger.error(f"Error loading players: {e}")
            unlinked = []
        player_names = {p["id"]: p["full_name"] for p in unlinked}
        player_id = st.selectbox(
            "Player", options=list(player_names), format_func=player_names.get, key="invite_player",
        )
        selected_teams = [team_id] if team_id else []
    else:
        selected_teams = st.multiselect("Teams", options=list(team_names), format_func=team_names.get, key="invite_teams")

    with st.form("invite_form"):
        email = st.text_input("Email")
        display_name = st.text_input("Display name (optional)")
        submitted = st.form_submit_button("Create invitation", type="primary")

    if submitted:
        if not is_valid_email(email.strip()):
            st.error("Please enter a valid email address.")
        elif not selected_teams:
            st.error("Select at least one team.")
        elif role == AppRole.PLAYER.value and player_id is None:
            st.error("Select the player this account belongs to.")
        else:
            request = {
                "email": email.strip(),
                "role": role,
                "teamIds": selected_teams,
                "redirectTo": get_redirect_url(),
            }
            if display_name.strip():
                request["display_name"] = display_name.strip()
            if player_id is not None:
                request["playerId"] = player_id

            _send_invitation(request)

    retry_request = get_invite_retry_request()
    if retry_request and st.button("🔁 Try again", key="invite_retry"):
        _send_invitation(retry_request)

# === LIST ===
with list_tab:
    col1, col2, col3 = st.columns([2, 3, 1])
    status = col1.selectbox(
        "Status", options=[None, "pending", "accepted", "canceled"],
        format_func=lambda s: "All" if s is None else STATUS_LABELS[s],
        key="invite_status_filter",
    )
    email_filter = col2.text_input("Email contains", key="invite_email_filter")
    page = col3.number_input("Page", min_value=1, value=1, step=1, key="invite_page")

    page_size = get_page_size()
    start = (int(page) - 1) * page_size
    invitations, error = invites.list_invitations(
        status=status, email=email_filter.strip() or None, start=start, end=start + page_size - 1,
    )
    if error:
        st.error(f"❌ {error['message']}: {error.get('details') or ''}")
        invitations = []

    all_team_ids = sorted({tid for inv in invitations for tid in (inv.get("team_ids") or [])})
    details, _ = invites.get_team_details(all_team_ids)
    team_labels = {d["id"]: f"{d['name']} ({d['club_name']})" for d in (details or [])}

    if not invitations:
        st.caption("No invitations found.")
    for inv in invitations:
        row = st.columns([3, 2, 3, 2, 1])
        row[0].markdown(f"**{inv['email']}**")
        row[1].markdown(f"{inv['role']} · {STATUS_LABELS.get(inv['status'], inv['status'])}")
        row[2].caption(", ".join(team_labels.get(tid, str(tid)) for tid in inv.get("team_ids") or []))
        row[3].caption(format_date(inv.get("created_at")))
        if inv["status"] == "pending" and row[4].button("Cancel", key=f"cancel_invite_{inv['id']}"):
            _, cancel_error = invites.cancel_invitation(inv["id"])
            if cancel_error:
                st.toast(f"❌ {cancel_error['message']}")
            else:
                st.toast("✅ Invitation canceled")
                st.rerun()

    if invitations:
        with st.expander("Export"):
            st.download_button(
                "Download CSV",
                pd.DataFrame(invitations).to_csv(index=False),
                file_name="invitations.csv",
                mime="text/csv",
            )
