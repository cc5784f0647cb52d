"""
================================================================================
CLUBMANAGER STREAMLIT APPLICATION
================================================================================

Purpose: Main entry point for ClubManager, a team management app for youth
sports clubs on Supabase.
Architecture: Browser → Streamlit → utils / data modules → Supabase

How it works:
1. Page config is set before any other Streamlit command
2. The Supabase session stored in st.session_state is re-applied each rerun
3. The sidebar navigation only contains the pages the user's role may open
4. Each page checks its role again before loading data
================================================================================
"""

import logging

import streamlit as st

from data.auth import get_role, is_logged_in, restore_session
from data.roles import navigation_sections
from data.shared_sidebar import render_sidebar_user_info

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# =============================================================================
# STREAMLIT PAGE CONFIGURATION
# =============================================================================
# IMPORTANT: This MUST be the first Streamlit command in the script

st.set_page_config(
    page_title="ClubManager",
    page_icon="⚽",
    layout="wide",
    initial_sidebar_state="expanded"
)

# section -> (page file, title, icon)
PAGES = {
    "dashboard": ("pages/dashboard.py", "Dashboard", "🏠"),
    "players": ("pages/players.py", "Players", "👥"),
    "matches": ("pages/matches.py", "Matches", "⚽"),
    "trainings": ("pages/trainings.py", "Trainings", "🏃"),
    "statistics": ("pages/statistics.py", "Statistics", "📊"),
    "evaluations": ("pages/evaluations.py", "Evaluations", "📝"),
    "my_evaluations": ("pages/my_evaluations.py", "My Evaluations", "📝"),
    "admin": ("pages/admin.py", "Administration", "🛠️"),
    "invitations": ("pages/invitations.py", "Invitations", "✉️"),
    "profile": ("pages/profile.py", "My Profile", "👤"),
}

# =============================================================================
# SESSION & NAVIGATION
# =============================================================================

if is_logged_in():
    restore_session()

# Invited users stay on the login page until they have chosen a password
if not is_logged_in() or st.session_state.get("recovery_verified"):
    navigation = st.navigation([st.Page("pages/login.py", title="Sign in", icon="🔐")])
else:
    sections = navigation_sections(get_role())
    navigation = st.navigation([
        st.Page(PAGES[section][0], title=PAGES[section][1], icon=PAGES[section][2], default=(i == 0))
        for i, section in enumerate(sections)
    ])
    render_sidebar_user_info()

navigation.run()
