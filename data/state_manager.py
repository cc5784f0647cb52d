import streamlit as st
from typing import Any, Optional


# === Team selection ===

def get_selected_team_id() -> Optional[Any]:
    """Gets the team the user is currently working on."""
    return st.session_state.get('state_selected_team_id')


def set_selected_team_id(team_id):
    """Sets the current team and drops the match selection that belonged to the old one."""
    if st.session_state.get('state_selected_team_id') != team_id:
        st.session_state.pop('state_selected_match_id', None)
    st.session_state['state_selected_team_id'] = team_id


# === Match selection ===

def get_selected_match_id() -> Optional[Any]:
    return st.session_state.get('state_selected_match_id')


def set_selected_match_id(match_id):
    st.session_state['state_selected_match_id'] = match_id


def clear_selected_match():
    st.session_state.pop('state_selected_match_id', None)


# === Lineup editing ===

def get_selected_period() -> int:
    """Quarter shown in the lineup editor, first quarter by default."""
    return st.session_state.get('state_selected_period', 1)


def set_selected_period(period: int):
    st.session_state['state_selected_period'] = period


# === Invitation retries ===

def count_invite_failure() -> int:
    """Counts a failed invitation and returns the attempts so far."""
    attempts = st.session_state.get('state_invite_attempts', 0) + 1
    st.session_state['state_invite_attempts'] = attempts
    return attempts


def set_invite_retry_request(request: Optional[dict]):
    """Keeps the request that the "Try again" button resends, None removes it."""
    if request is None:
        st.session_state.pop('state_invite_retry_request', None)
    else:
        st.session_state['state_invite_retry_request'] = request


def get_invite_retry_request() -> Optional[dict]:
    return st.session_state.get('state_invite_retry_request')


def reset_invite_attempts():
    st.session_state.pop('state_invite_attempts', None)
    st.session_state.pop('state_invite_retry_request', None)


def clear_selection():
    """Clears every navigation key, used on sign out."""
    for key in [k for k in st.session_state.keys() if str(k).startswith('state_')]:
        del st.session_state[key]
