"""
================================================================================
INVITATION ERROR HANDLING
================================================================================

Purpose: Turn errors returned by ``utils.invites`` into messages the
invitations page can show, and decide whether the user may retry.

Errors are matched by code first and then by keywords in the message, in a
fixed order: auth, permission, network, timeout, email, validation, team,
role, server function, database, parse.
================================================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class InvitationError:
    message: str
    details: Optional[str] = None
    code: Optional[str] = None
    is_retryable: bool = True
    user_action: Optional[str] = None


# (code, message keywords, friendly message, details, retryable, user action)
_RULES = [
    ("AUTH_ERROR", ("unauthorized", "authentication"),
     "Authentication required", "Please log in again to continue", False, "Log in again"),
    ("UNAUTHORIZED_ERROR", ("permission", "forbidden"),
     "Insufficient permissions",
     "You do not have permission to create invitations. Please contact your administrator.",
     False, "Contact administrator"),
    ("NETWORK_ERROR", ("network", "fetch", "connection"),
     "Network connection error", "Please check your internet connection and try again.",
     True, "Check connection and retry"),
    ("TIMEOUT_ERROR", ("timeout", "timed out"),
     "Request timed out",
     "The server took too long to respond. This may be due to high server load.",
     True, "Wait a moment and try again"),
    ("EMAIL_ERROR", ("email",),
     "Email address issue",
     "Please verify the email address is correct and the user does not already exist.",
     True, "Check email address"),
    ("VALIDATION_ERROR", ("validation",),
     "Invalid data provided", "Please check all form fields and ensure they are filled correctly.",
     True, "Check form data and retry"),
    ("TEAM_ERROR", ("team",),
     "Team selection issue", "One or more selected teams may no longer exist or be accessible.",
     True, "Refresh page and reselect teams"),
    ("ROLE_ERROR", ("role",),
     "Invalid role selection", "The selected role is not valid for invitations.",
     True, "Select a valid role"),
    ("EDGE_FUNCTION_ERROR", ("function",),
     "Server processing error", "There was an issue processing your request on the server.",
     True, "Try again in a few moments"),
    ("DATABASE_ERROR", ("database",),
     "Database error", "There was an issue saving the invitation data.",
     True, "Try again later"),
    ("PARSE_ERROR", ("json", "parse"),
     "Data processing error", "There was an issue processing the server response.",
     True, "Refresh page and try again"),
]

_MAX_RETRIES = {
    "NETWORK_ERROR": 3,
    "TIMEOUT_ERROR": 3,
    "VALIDATION_ERROR": 2,
    "EMAIL_ERROR": 2,
    "TEAM_ERROR": 2,
    "ROLE_ERROR": 2,
    "EDGE_FUNCTION_ERROR": 2,
    "DATABASE_ERROR": 2,
}
DEFAULT_MAX_RETRIES = 3


def _field(error: Any, name: str):
    if isinstance(error, dict):
        return error.get(name)
    return getattr(error, name, None)


def map_invitation_error(error: Any) -> InvitationError:
    """Map a service error (dict, object or exception) to an ``InvitationError``."""
    if not error:
        return InvitationError(
            message="An unknown error occurred",
            is_retryable=True,
            user_action="Please try again",
        )

    message = _field(error, "message") or str(error)
    code = _field(error, "code") or "UNKNOWN_ERROR"
    details = _field(error, "details") or ""
    lowered = message.lower()

    for rule_code, keywords, friendly, rule_details, retryable, action in _RULES:
        if code == rule_code or any(k in lowered for k in keywords):
            return InvitationError(
                message=friendly,
                details=rule_details,
                code=code,
                is_retryable=retryable,
                user_action=action,
            )

    return InvitationError(
        message="Invitation creation failed",
        details=details or message or "An unexpected error occurred while creating the invitation.",
        code=code,
        is_retryable=True,
        user_action="Try again or contact support if the problem persists",
    )


def get_max_retries(code: Optional[str]) -> int:
    return _MAX_RETRIES.get(code, DEFAULT_MAX_RETRIES)


def should_retry_invitation(error: InvitationError, attempt_count: int) -> bool:
    if not error.is_retryable:
        return False
    return attempt_count < get_max_retries(error.code)


def get_error_toast_message(error: InvitationError, attempt_count: int = 1) -> Dict[str, str]:
    retry_text = " You can try again." if should_retry_invitation(error, attempt_count) else ""
    return {
        "title": f"❌ {error.message}",
        "description": f"{error.details or error.message}{retry_text}",
    }


def get_success_toast_message(email: str, role: str) -> Dict[str, str]:
    return {
        "title": "✅ Invitation created successfully",
        "description": f"Invitation link generated for {email} with {role} role. The link is ready to share.",
    }


def get_loading_toast_message(operation: str) -> Dict[str, str]:
    messages = {
        "create": ("Creating invitation...", "Please wait while we generate the invitation link."),
        "cancel": ("Cancelling invitation...", "Please wait while we cancel the invitation."),
        "load": ("Loading invitations...", "Please wait while we fetch the invitation data."),
    }
    title, description = messages.get(
        operation, ("Processing...", "Please wait while we process your request.")
    )
    return {"title": title, "description": description}
