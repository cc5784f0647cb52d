import logging

import pandas as pd
import streamlit as st

from data.auth import get_user_id, require_role
from data.roles import PLAYER_ROLES
from utils import db
from utils.analytics import evaluation_radar_figure
from utils.errors import log_error, map_supabase_error
from utils.evaluations import category_totals, overall_percentage
from utils.formatting import format_date

logger = logging.getLogger(__name__)

require_role(*PLAYER_ROLES)

st.title("📝 My Evaluations")

try:
    player = db.get_player_for_user(get_user_id())
    structure = db.get_evaluation_structure()
    evaluations = db.get_player_evaluations(player["id"]) if player else []
except Exception as e:
    log_error(e, "my evaluations")
    st.error(f"⚠️ {map_supabase_error(e).message}")
    st.stop()

if not player:
    st.info("Your account is not linked to a player yet.")
    st.stop()

if not evaluations:
    st.info("No evaluations yet. Your coach will add them during the season.")
    st.stop()

# Progress over time
st.line_chart(
    pd.DataFrame({
        "Date": [format_date(e["evaluation_date"]) for e in reversed(evaluations)],
        "Overall %": [overall_percentage(structure, e["scores"]) for e in reversed(evaluations)],
    }).set_index("Date")
)

for evaluation in evaluations:
    coach = (evaluation.get("coach") or {}).get("display_name") or "your coach"
    with st.expander(f"{format_date(evaluation['evaluation_date'])} · by {coach}", expanded=evaluation is evaluations[0]):
        if evaluation.get("notes"):
            st.markdown(evaluation["notes"])
        totals = category_totals(structure, evaluation["scores"])
        st.plotly_chart(evaluation_radar_figure(totals), width="stretch")
        criteria_notes = [s for s in evaluation["scores"] if s.get("notes") or s.get("example_video_url")]
        for s in criteria_notes:
            if s.get("notes"):
                st.caption(s["notes"])
            if s.get("example_video_url"):
                st.video(s["example_video_url"])
