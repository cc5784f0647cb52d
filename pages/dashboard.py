import logging

import streamlit as st

from data.auth import get_profile_cached, get_role, get_user_id, is_logged_in
from data.roles import is_coach_or_above
from data.security import sanitize_html
from data.shared_sidebar import render_team_selector
from utils import db
from utils.analytics import render_overview_metrics, results_figure
from utils.errors import log_error, map_supabase_error
from utils.formatting import format_date, format_result_badge, format_score

logger = logging.getLogger(__name__)

if not is_logged_in():
    st.error("❌ Please sign in.")
    st.stop()

profile = get_profile_cached() or {}
role = get_role()

st.title("🏠 Dashboard")
st.caption(f"Welcome back, {profile.get('display_name') or 'there'}")
st.divider()

# === PLAYER VIEW ===
if not is_coach_or_above(role):
    try:
        player = db.get_player_for_user(get_user_id())
        evaluations = db.get_player_evaluations(player["id"]) if player else []
    except Exception as e:
        log_error(e, "dashboard player view")
        st.error(f"⚠️ {map_supabase_error(e).message}")
        st.stop()

    if not player:
        st.info("Your account is not linked to a player yet. Ask your coach to send you an invitation.")
        st.stop()

    col1, col2 = st.columns(2)
    col1.metric("Jersey number", player.get("jersey_number") if player.get("jersey_number") is not None else "–")
    col2.metric("Evaluations", len(evaluations))
    if evaluations:
        st.caption(f"Latest evaluation on {format_date(evaluations[0]['evaluation_date'])}. "
                   "Open **My Evaluations** for details.")
    st.stop()

# === COACH VIEW ===
team = render_team_selector()
if not team:
    st.info("No team available. A super admin can create teams and assign coaches in Administration.")
    st.stop()

st.subheader(team.get("name") or "Team")

try:
    overall = db.get_team_overall_stats(team["id"])
    match_results = db.get_match_results(team["id"])
    trainings = db.list_training_sessions(team["id"])
except Exception as e:
    log_error(e, "dashboard coach view")
    st.error(f"⚠️ {map_supabase_error(e).message}")
    st.stop()

render_overview_metrics(overall)
st.divider()

col1, col2 = st.columns([3, 2])
with col1:
    st.markdown("#### Recent matches")
    if not match_results:
        st.caption("No matches yet.")
    for m in match_results[:5]:
        score = format_score(m["team_goals"], m["opponent_goals"]) if m["result"] else "not played"
        st.markdown(
            f"{format_result_badge(m['result'])} &nbsp; **{format_date(m['match_date'])}** vs "
            f"{sanitize_html(m['opponent'])} · {score}",
            unsafe_allow_html=True,
        )
    st.markdown("#### Recent trainings")
    if not trainings:
        st.caption("No trainings yet.")
    for t in trainings[:5]:
        st.markdown(f"- {format_date(t['session_date'], with_time=True)}")

with col2:
    if overall["total_matches"]:
        st.plotly_chart(results_figure(overall), width="stretch")
