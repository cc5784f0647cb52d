import logging

import streamlit as st

from data.auth import set_password, sign_in, verify_recovery_token
from data.security import is_valid_email, validate_password

logger = logging.getLogger(__name__)

st.title("⚽ ClubManager")
st.caption("Sign in to manage your teams, matches and trainings")

# Invitation and password recovery links land here with ?token_hash=...&type=recovery
params = st.query_params
if params.get("type") == "recovery" and params.get("token_hash"):
    if not st.session_state.get("recovery_verified"):
        try:
            verify_recovery_token(params["token_hash"])
            st.session_state["recovery_verified"] = True
        except Exception as e:
            logger.warning(f"Recovery link rejected: {e}")
            st.error("❌ This link is invalid or has expired. Ask your administrator for a new invitation.")
            st.stop()

    st.subheader("Choose your password")
    with st.form("set_password_form"):
        password = st.text_input("New password", type="password")
        confirmation = st.text_input("Repeat password", type="password")
        submitted = st.form_submit_button("Save password", type="primary")

    if submitted:
        problem = validate_password(password, confirmation)
        if problem:
            st.error(problem)
        else:
            try:
                set_password(password)
            except Exception as e:
                logger.error(f"Setting password failed: {e}")
                st.error(f"❌ Could not save the password: {e}")
            else:
                st.session_state.pop("recovery_verified", None)
                st.query_params.clear()
                st.success("✅ Password saved.")
                st.rerun()
    st.stop()

with st.form("login_form"):
    email = st.text_input("Email")
    password = st.text_input("Password", type="password")
    submitted = st.form_submit_button("Sign in", type="primary", use_container_width=True)

if submitted:
    if not is_valid_email(email.strip()) or not password:
        st.error("Please enter a valid email address and your password.")
    else:
        try:
            sign_in(email, password)
        except Exception as e:
            logger.info(f"Sign in failed: {e}")
            st.error("❌ Invalid email or password.")
        else:
            st.rerun()

st.caption("Accounts are created by invitation. Contact your club administrator if you need access.")
