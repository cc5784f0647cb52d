import logging

import pandas as pd
import streamlit as st

from data.auth import require_role
from data.roles import COACH_ROLES
from data.shared_sidebar import render_team_selector
from utils import db
from utils.analytics import render_statistics_section
from utils.errors import log_error, map_supabase_error

logger = logging.getLogger(__name__)

require_role(*COACH_ROLES)

st.title("📊 Statistics")

team = render_team_selector()
if not team:
    st.info("Select or create a team first.")
    st.stop()

render_statistics_section(team["id"])

st.divider()
st.subheader("Player statistics")
try:
    player_stats = db.get_team_player_statistics(team["id"])
except Exception as e:
    log_error(e, "player statistics")
    st.error(f"⚠️ {map_supabase_error(e).message}")
    player_stats = []

if player_stats:
    st.dataframe(pd.DataFrame(player_stats), hide_index=True, use_container_width=True)
else:
    st.caption("No player statistics available yet.")
