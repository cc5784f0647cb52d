"""Tests for input validation and log redaction."""

import logging

import pytest

from data.security import (
    is_valid_email,
    redact_sensitive,
    sanitize_html,
    secure_log,
    validate_jersey_number,
    validate_password,
    validate_text,
)


def test_sanitize_html():
    assert sanitize_html("<b>FC</b> & co") == "&lt;b&gt;FC&lt;/b&gt; &amp; co"
    assert sanitize_html(None) == ""


@pytest.mark.parametrize("email,valid", [
    ("kim@club.ch", True),
    ("kim.meier+u12@mail.club.ch", True),
    ("kim@club", False),
    ("kim club@club.ch", False),
    ("", False),
    (None, False),
])
def test_is_valid_email(email, valid):
    assert is_valid_email(email) is valid


@pytest.mark.parametrize("value,valid", [
    (None, True), ("", True), (0, True), (99, True), ("7", True),
    (100, False), (-1, False), ("ten", False),
])
def test_validate_jersey_number(value, valid):
    assert validate_jersey_number(value) is valid


def test_validate_text():
    assert validate_text("Strong second half") == (True, None)
    ok, message = validate_text("x" * 11, max_length=10, label="Notes")
    assert not ok
    assert message == "Notes exceeds maximum length of 10 characters"
    ok, _ = validate_text("<script>alert(1)</script>")
    assert not ok


def test_validate_password():
    assert validate_password("short", "short") == "Password must be at least 8 characters"
    assert validate_password("longenough", "different") == "Passwords do not match"
    assert validate_password("longenough", "longenough") is None


def test_redact_sensitive():
    redacted = redact_sensitive({"user_id": "u1", "action_link": "https://x", "Access_Token": "t"})
    assert redacted == {"user_id": "u1", "action_link": "[REDACTED]", "Access_Token": "[REDACTED]"}
    assert redact_sensitive(None) == {}


def test_secure_log_hides_secrets(caplog):
    with caplog.at_level(logging.INFO, logger="data.security"):
        secure_log("info", "Signed in", {"email": "kim@club.ch", "password": "hunter22"})
    assert "hunter22" not in caplog.text
    assert "kim@club.ch" in caplog.text
