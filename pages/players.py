import logging

import pandas as pd
import streamlit as st

from data.auth import require_role
from data.roles import COACH_ROLES
from data.security import validate_jersey_number
from data.shared_sidebar import render_team_selector
from utils import db
from utils.errors import log_error, map_supabase_error
from utils.formatting import format_player_name

logger = logging.getLogger(__name__)

require_role(*COACH_ROLES)

st.title("👥 Players")

team = render_team_selector()
if not team:
    st.info("Select or create a team first.")
    st.stop()

st.caption(team.get("name") or "")


def _jersey(value):
    return int(value) if value not in (None, "") else None


try:
    players = db.list_players(team["id"])
except Exception as e:
    log_error(e, "players list")
    st.error(f"⚠️ {map_supabase_error(e).message}")
    st.stop()

if players:
    st.dataframe(
        pd.DataFrame([{
            "Nr": p.get("jersey_number"),
            "Name": p.get("full_name"),
            "Account linked": "✅" if p.get("user_id") else "–",
        } for p in players]),
        hide_index=True,
        use_container_width=True,
    )
else:
    st.info("No players in this team yet.")

st.divider()
add_tab, edit_tab = st.tabs(["➕ Add player", "✏️ Edit player"])

with add_tab:
    with st.form("add_player_form", clear_on_submit=True):
        full_name = st.text_input("Full name")
        jersey_number = st.text_input("Jersey number (optional)")
        submitted = st.form_submit_button("Add player", type="primary")

    if submitted:
        if not full_name.strip():
            st.error("Name is required.")
        elif not validate_jersey_number(jersey_number):
            st.error("Jersey number must be between 0 and 99.")
        else:
            try:
                db.create_player(team["id"], full_name.strip(), _jersey(jersey_number))
            except Exception as e:
                log_error(e, "create player")
                st.toast(f"❌ {map_supabase_error(e).message}")
            else:
                st.toast(f"✅ {full_name.strip()} added")
                st.rerun()

with edit_tab:
    if not players:
        st.caption("Nothing to edit yet.")
    else:
        by_id = {p["id"]: p for p in players}
        player_id = st.selectbox(
            "Player",
            options=list(by_id),
            format_func=lambda pid: format_player_name(by_id[pid]),
            key="edit_player_select",
        )
        player = by_id[player_id]
        with st.form("edit_player_form"):
            full_name = st.text_input("Full name", value=player.get("full_name") or "")
            jersey_number = st.text_input(
                "Jersey number",
                value="" if player.get("jersey_number") is None else str(player["jersey_number"]),
            )
            col1, col2 = st.columns(2)
            save = col1.form_submit_button("Save", type="primary")
            delete = col2.form_submit_button("Delete player")

        if save:
            if not full_name.strip() or not validate_jersey_number(jersey_number):
                st.error("Please enter a name and a jersey number between 0 and 99.")
            else:
                try:
                    db.update_player(player_id, {"full_name": full_name.strip(), "jersey_number": _jersey(jersey_number)})
                except Exception as e:
                    log_error(e, "update player")
                    st.toast(f"❌ {map_supabase_error(e).message}")
                else:
                    st.toast("✅ Player updated")
                    st.rerun()
        if delete:
            try:
                db.delete_player(player_id)
            except Exception as e:
                log_error(e, "delete player")
                st.toast(f"❌ {map_supabase_error(e).message}")
            else:
                st.toast("🗑️ Player deleted")
                st.rerun()
