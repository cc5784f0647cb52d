import logging
from datetime import datetime, time

import streamlit as st

from data.auth import require_role
from data.roles import COACH_ROLES
from data.security import validate_text
from data.shared_sidebar import render_team_selector
from utils import db
from utils.errors import log_error, map_supabase_error
from utils.formatting import ATTENDANCE_LABELS, attendance_dataframe, format_date, format_player_name
from utils.statistics import attendance_changes, player_attendance_summary

logger = logging.getLogger(__name__)

require_role(*COACH_ROLES)

st.title("🏃 Trainings")

team = render_team_selector()
if not team:
    st.info("Select or create a team first.")
    st.stop()

try:
    trainings = db.list_training_sessions(team["id"])
    players = db.list_players(team["id"])
except Exception as e:
    log_error(e, "trainings list")
    st.error(f"⚠️ {map_supabase_error(e).message}")
    st.stop()

sessions_tab, attendance_tab, summary_tab = st.tabs(["📅 Sessions", "✅ Attendance", "📊 Summary"])

# === SESSIONS ===
with sessions_tab:
    with st.form("create_training_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        day = col1.date_input("Date", value=datetime.now().date())
        start = col2.time_input("Start", value=time(18, 0))
        notes = st.text_area("Notes")
        submitted = st.form_submit_button("Add training", type="primary")
    if submitted:
        ok, message = validate_text(notes, label="Notes")
        if not ok:
            st.error(message)
        else:
            try:
                db.create_training_session(team["id"], datetime.combine(day, start).isoformat(), notes.strip() or None)
            except Exception as e:
                log_error(e, "create training")
                st.toast(f"❌ {map_supabase_error(e).message}")
            else:
                st.toast("✅ Training added")
                st.rerun()

    if not trainings:
        st.info("No trainings yet.")
    for t in trainings:
        row = st.columns([3, 5, 1])
        row[0].markdown(f"**{format_date(t['session_date'], with_time=True)}**")
        row[1].caption(t.get("notes") or "")
        if row[2].button("🗑️", key=f"delete_training_{t['id']}"):
            try:
                db.delete_training_session(t["id"])
            except Exception as e:
                log_error(e, "delete training")
                st.toast(f"❌ {map_supabase_error(e).message}")
            else:
                st.rerun()

# === ATTENDANCE ===
with attendance_tab:
    if not trainings or not players:
        st.info("Add trainings and players to record attendance.")
    else:
        by_id = {t["id"]: t for t in trainings}
        training_id = st.selectbox(
            "Training",
            options=list(by_id),
            format_func=lambda tid: format_date(by_id[tid]["session_date"], with_time=True),
            key="attendance_training_select",
        )
        try:
            recorded = {row["player_id"]: row["status"] for row in db.list_training_attendance(training_id)}
        except Exception as e:
            log_error(e, "attendance list")
            st.error(f"⚠️ {map_supabase_error(e).message}")
            st.stop()

        statuses = list(ATTENDANCE_LABELS)
        st.caption("Players without a selection stay unrecorded.")
        with st.form(f"attendance_form_{training_id}"):
            chosen = {}
            for p in players:
                current = recorded.get(p["id"])
                chosen[p["id"]] = st.radio(
                    format_player_name(p),
                    options=statuses,
                    index=statuses.index(current) if current in statuses else None,
                    format_func=lambda s: ATTENDANCE_LABELS[s],
                    horizontal=True,
                    key=f"attendance_{training_id}_{p['id']}",
                )
            submitted = st.form_submit_button("Save attendance", type="primary")
        if submitted:
            changed = attendance_changes(recorded, chosen)
            try:
                for pid, status in changed.items():
                    db.upsert_training_attendance(training_id, pid, status)
            except Exception as e:
                log_error(e, "save attendance")
                st.toast(f"❌ {map_supabase_error(e).message}")
            else:
                st.toast(f"✅ Attendance saved ({len(changed)} changed)")
                st.rerun()

# === SUMMARY ===
with summary_tab:
    try:
        summary = player_attendance_summary(db.get_team_attendance_stats(team["id"]))
    except Exception as e:
        log_error(e, "attendance summary")
        st.error(f"⚠️ {map_supabase_error(e).message}")
        summary = []
    if summary:
        st.dataframe(attendance_dataframe(summary), hide_index=True, use_container_width=True)
    else:
        st.caption("No attendance recorded yet.")
