"""pages.profile

The signed-in user's profile: display name, role, team assignments and
password change. Reachable for every signed-in user, also while no role has
been assigned yet.
"""

import logging

import streamlit as st

from data.auth import get_current_user, get_profile_cached, get_role, get_user_id, is_logged_in, refresh_profile, set_password
from data.security import validate_password
from data.shared_sidebar import ROLE_LABELS, get_available_teams
from data.user_management import update_display_name
from utils.errors import log_error, map_supabase_error
from utils.formatting import format_date

logger = logging.getLogger(__name__)

if not is_logged_in():
    st.error("❌ Please sign in.")
    st.stop()

st.title("👤 My Profile")
st.caption("Manage your profile and password")
st.divider()

user = get_current_user() or {}
profile = get_profile_cached()
role = get_role()

if not profile:
    st.warning("⚠️ Your profile could not be loaded.")
    if st.button("Try again"):
        refresh_profile()
        st.rerun()
    st.stop()

if role is None:
    st.warning("No role has been assigned to your account yet. Contact your club administrator.")

info_tab, password_tab = st.tabs(["📋 Information", "🔑 Password"])

with info_tab:
    st.markdown(f"### {profile.get('display_name') or user.get('email')}")
    st.caption(" • ".join(filter(None, [
        f"📧 {user.get('email')}" if user.get("email") else None,
        f"🎽 {ROLE_LABELS.get(role, 'No role')}",
        f"📅 Member since {format_date(profile.get('created_at'))}" if profile.get("created_at") else None,
    ])))

    if role:
        try:
            teams = get_available_teams()
        except Exception as e:
            log_error(e, "profile teams")
            teams = []
        if teams:
            st.markdown("**Teams:** " + ", ".join(t.get("name") or "Unnamed team" for t in teams))

    with st.form("display_name_form"):
        display_name = st.text_input("Display name", value=profile.get("display_name") or "")
        if st.form_submit_button("Save"):
            try:
                update_display_name(get_user_id(), display_name)
            except ValueError as e:
                st.error(str(e))
            except Exception as e:
                log_error(e, "update display name")
                st.toast(f"❌ {map_supabase_error(e).message}")
            else:
                refresh_profile()
                st.toast("✅ Profile updated")
                st.rerun()

with password_tab:
    with st.form("change_password_form", clear_on_submit=True):
        password = st.text_input("New password", type="password")
        confirmation = st.text_input("Repeat password", type="password")
        submitted = st.form_submit_button("Change password")
    if submitted:
        problem = validate_password(password, confirmation)
        if problem:
            st.error(problem)
        else:
            try:
                set_password(password)
            except Exception as e:
                logger.error(f"Password change failed: {e}")
                st.error("❌ Could not change the password.")
            else:
                st.success("✅ Password changed.")
