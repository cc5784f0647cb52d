"""Configuration lookup for ClubManager.

Values are resolved from ``st.secrets`` first (``.streamlit/secrets.toml``),
then from environment variables (a local ``.env`` file is loaded if present),
then from the defaults below.
"""

import os
import logging

import streamlit as st
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_REDIRECT_URL = "http://localhost:8501"
DEFAULT_MIN_PERIODS_PER_PLAYER = 2
DEFAULT_PAGE_SIZE = 25


def _secret(section, key):
    # st.secrets raises if no secrets file exists at all
    try:
        return st.secrets.get(section, {}).get(key)
    except Exception:
        return None


def get_setting(key, env_var=None, default=None):
    """Return an ``[app]`` setting from secrets, the environment or ``default``."""
    value = _secret("app", key)
    if value is not None:
        return value
    if env_var:
        env_value = os.environ.get(env_var)
        if env_value:
            return env_value
    return default


def get_int_setting(key, env_var=None, default=0):
    value = get_setting(key, env_var, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid integer for setting {key!r}: {value!r}, using {default}")
        return default


def get_min_periods_per_player():
    return get_int_setting("min_periods_per_player", "MIN_PERIODS_PER_PLAYER", DEFAULT_MIN_PERIODS_PER_PLAYER)


def get_page_size():
    return get_int_setting("page_size", "PAGE_SIZE", DEFAULT_PAGE_SIZE)


def get_invite_function_url():
    return get_setting("invite_function_url", "INVITE_FUNCTION_URL")


def get_redirect_url():
    return get_setting("redirect_url", "REDIRECT_URL", DEFAULT_REDIRECT_URL)
