"""Authentication helpers for Streamlit using Supabase email/password auth.

Each browser session signs in on its own Supabase client, kept in
``st.session_state`` next to the signed-in user, the session tokens and the
role from ``profiles.role``. The shared cached connection never carries a
login. The role is loaded once per session; ``refresh_profile`` reloads it
after an admin changes it.
"""

import logging

import streamlit as st

from data.roles import is_valid_app_role
from utils.db import USER_CLIENT_KEY, get_profile, new_user_client

logger = logging.getLogger(__name__)

SESSION_KEYS = ("auth_user", "auth_access_token", "auth_refresh_token", "auth_profile", USER_CLIENT_KEY)


def _session_client():
    client = st.session_state.get(USER_CLIENT_KEY)
    if client is None:
        client = new_user_client()
        st.session_state[USER_CLIENT_KEY] = client
    return client


def _auth():
    return _session_client().auth


def _store_session(client, response):
    user = response.user
    session = response.session
    st.session_state[USER_CLIENT_KEY] = client
    st.session_state["auth_user"] = {"id": user.id, "email": user.email}
    if session:
        st.session_state["auth_access_token"] = session.access_token
        st.session_state["auth_refresh_token"] = session.refresh_token
    st.session_state.pop("auth_profile", None)


def sign_in(email: str, password: str) -> dict:
    """Sign in with email and password on a fresh client for this session.

    Raises the Supabase auth error on bad credentials; the login page shows it.
    """
    client = new_user_client()
    response = client.auth.sign_in_with_password({"email": email.strip(), "password": password})
    _store_session(client, response)
    logger.info("User signed in")
    return st.session_state["auth_user"]


def sign_up(email: str, password: str, display_name: str = None) -> dict:
    options = {"data": {"display_name": display_name}} if display_name else {}
    client = new_user_client()
    response = client.auth.sign_up({"email": email.strip(), "password": password, "options": options})
    if response.user is None:
        raise ValueError("Sign up did not return a user")
    if response.session:
        _store_session(client, response)
    return {"id": response.user.id, "email": response.user.email}


def verify_recovery_token(token_hash: str) -> dict:
    """Exchange the token from an invitation or recovery link for a session."""
    client = new_user_client()
    response = client.auth.verify_otp({"token_hash": token_hash, "type": "recovery"})
    if response.user is None:
        raise ValueError("Invalid or expired link")
    _store_session(client, response)
    return st.session_state["auth_user"]


def set_password(password: str):
    """Set a new password for the signed-in user (used after an invitation link)."""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    _auth().update_user({"password": password})


def restore_session():
    """Check the session's own client on every rerun.

    The client refreshes its tokens itself; the current ones are copied back
    into session state for the invite API. Returns False when there is no
    client or its session is gone; the user then has to sign in again.
    """
    client = st.session_state.get(USER_CLIENT_KEY)
    if client is None:
        clear_user_session()
        return False
    try:
        session = client.auth.get_session()
    except Exception as e:
        logger.warning(f"Session could not be restored: {e}")
        clear_user_session()
        return False
    if session is None:
        clear_user_session()
        return False
    st.session_state["auth_access_token"] = session.access_token
    st.session_state["auth_refresh_token"] = session.refresh_token
    return True


def is_logged_in() -> bool:
    return bool(st.session_state.get("auth_user"))


def get_current_user():
    return st.session_state.get("auth_user")


def get_user_id():
    user = get_current_user()
    return user["id"] if user else None


def get_access_token():
    return st.session_state.get("auth_access_token")


def get_profile_cached():
    """Profile of the signed-in user, loaded once per session."""
    if not is_logged_in():
        return None
    if "auth_profile" not in st.session_state:
        try:
            st.session_state["auth_profile"] = get_profile(get_user_id())
        except Exception as e:
            logger.error(f"Error loading profile: {e}")
            return None
    return st.session_state["auth_profile"]


def get_role():
    """Role of the signed-in user, or None when unknown or invalid."""
    profile = get_profile_cached()
    role = profile.get("role") if profile else None
    return role if is_valid_app_role(role) else None


def refresh_profile():
    st.session_state.pop("auth_profile", None)
    return get_profile_cached()


def require_role(*roles):
    """Stop the page unless the signed-in user holds one of ``roles``."""
    if not is_logged_in():
        st.error("❌ Please sign in.")
        st.stop()
    if get_role() not in roles:
        st.error("❌ You do not have permission to view this page.")
        st.stop()


def clear_user_session():
    """Remove auth and page state so the next user starts clean."""
    for key in SESSION_KEYS:
        st.session_state.pop(key, None)
    from data.state_manager import clear_selection
    clear_selection()


def sign_out():
    client = st.session_state.get(USER_CLIENT_KEY)
    if client is not None:
        try:
            client.auth.sign_out()
        except Exception as e:
            # The local session is cleared regardless
            logger.warning(f"Sign out failed on the server: {e}")
    clear_user_session()
    st.rerun()
