"""
Security utilities for input validation and data protection
"""

import html
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

SENSITIVE_FIELDS = ['password', 'token', 'secret', 'key', 'authorization', 'cookie', 'action_link']


def sanitize_html(text: str) -> str:
    """Escape HTML to prevent XSS attacks"""
    if not text:
        return ""
    return html.escape(text)


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def validate_jersey_number(value: Any) -> bool:
    """Jersey numbers are optional; when given they are 0..99"""
    if value is None or value == "":
        return True
    try:
        number = int(value)
    except (ValueError, TypeError):
        return False
    return 0 <= number <= 99


def validate_text(text: str, max_length: int = 2000, label: str = "Text") -> tuple[bool, Optional[str]]:
    """
    Validate free text such as match or evaluation notes
    Returns: (is_valid, error_message)
    """
    if not text:
        return True, None

    if len(text) > max_length:
        return False, f"{label} exceeds maximum length of {max_length} characters"

    dangerous_patterns = [
        r'<script',
        r'javascript:',
        r'onerror=',
        r'onload=',
        r'<iframe',
    ]
    for pattern in dangerous_patterns:
        if re.search(pattern, text, re.IGNORECASE):
            return False, f"{label} contains potentially dangerous content"

    return True, None


def validate_password(password: str, confirmation: str) -> Optional[str]:
    """Return an error message, or None when the password can be used"""
    if not password or len(password) < 8:
        return "Password must be at least 8 characters"
    if password != confirmation:
        return "Passwords do not match"
    return None


def redact_sensitive(details: Optional[dict]) -> dict:
    """Copy of ``details`` with secret-looking values replaced"""
    safe_details = {}
    for key, value in (details or {}).items():
        key_lower = str(key).lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            safe_details[key] = "[REDACTED]"
        else:
            safe_details[key] = value
    return safe_details


def secure_log(level: str, message: str, details: dict = None):
    """
    Log an event without exposing tokens, passwords or invitation links
    """
    logger.log(logging.getLevelName(level.upper()), "%s %s", message, redact_sensitive(details))
