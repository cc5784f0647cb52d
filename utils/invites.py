"""Client side of the invitation workflow.

``create_invitation`` calls the invite-user function (``api/main.py``) over
HTTP with the signed-in user's access token. The other helpers read and
update ``pending_invites`` through the session's Supabase client.

Every function returns a ``(data, error)`` pair where exactly one is None.
``error`` is a dict with ``message``, ``details`` and ``code``.
"""

import logging

import requests
from postgrest.exceptions import APIError

from utils.config import get_invite_function_url
from utils.db import get_client

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
INVITE_STATUSES = ("pending", "accepted", "canceled")


def _error(message, details=None, code=None):
    return None, {"message": message, "details": details, "code": code}


def _db_error(message, exc):
    if isinstance(exc, APIError):
        return _error(message, exc.message, exc.code or "DATABASE_ERROR")
    return _error(f"Unexpected error: {message.lower()}", str(exc), "UNEXPECTED_ERROR")


def _classify_function_error(status_code, error_message):
    """Pick a code for a non-ok answer from the invite function."""
    lowered = error_message.lower()
    if status_code == 401:
        return "Authentication required", "AUTH_ERROR"
    if status_code == 403:
        return "Unauthorized access", "UNAUTHORIZED_ERROR"
    if "email" in lowered:
        return "Email validation failed", "EMAIL_ERROR"
    if "team" in lowered:
        return "Team validation failed", "TEAM_ERROR"
    if "role" in lowered:
        return "Role validation failed", "ROLE_ERROR"
    if status_code >= 500:
        return "Failed to create invitation", "EDGE_FUNCTION_ERROR"
    return "Failed to create invitation", "INVITATION_ERROR"


def create_invitation(request, access_token):
    """Ask the invite function to create (or refresh) an invitation.

    ``request`` carries ``email``, ``role``, ``teamIds`` and optionally
    ``display_name``, ``playerId`` and ``redirectTo``. On success the data is
    the function's ``{"ok": True, "action_link": ...}`` answer.
    """
    if not request.get("email") or not request.get("role") or not request.get("teamIds"):
        return _error(
            "Invalid request data",
            "Email, role, and at least one team are required",
            "VALIDATION_ERROR",
        )
    if not access_token:
        return _error(
            "Authentication required",
            "No active session found. Please log in again.",
            "AUTH_ERROR",
        )

    url = get_invite_function_url()
    if not url:
        return _error(
            "Invitation service is not configured",
            "Set invite_function_url in the [app] section of the secrets.",
            "EDGE_FUNCTION_ERROR",
        )

    try:
        response = requests.post(
            url,
            json=request,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.Timeout:
        return _error(
            "Request timed out",
            "The invitation creation took too long. Please try again.",
            "TIMEOUT_ERROR",
        )
    except requests.ConnectionError as e:
        logger.warning(f"Invite function unreachable: {e}")
        return _error(
            "Network error",
            "Failed to connect to the server. Please check your internet connection.",
            "NETWORK_ERROR",
        )
    except requests.RequestException as e:
        return _error("Unexpected error creating invitation", str(e), "UNEXPECTED_ERROR")

    try:
        body = response.json()
    except ValueError:
        return _error(
            "Data parsing error",
            "Invalid response from server. Please try again.",
            "PARSE_ERROR",
        )

    if not isinstance(body, dict) or not body.get("ok"):
        error_message = (body.get("error") if isinstance(body, dict) else None) or "Unknown error occurred"
        message, code = _classify_function_error(response.status_code, error_message)
        logger.info(f"Invitation rejected ({response.status_code}): {error_message}")
        return _error(message, error_message, code)

    return body, None


def list_invitations(status=None, email=None, start=0, end=24):
    """Invitations, newest first, optionally filtered by status and email substring."""
    if status is not None and status not in INVITE_STATUSES:
        return _error("Invalid status filter", f"Status must be one of {INVITE_STATUSES}", "VALIDATION_ERROR")
    try:
        query = get_client().table("pending_invites").select("*").order("created_at", desc=True).range(start, end)
        if status:
            query = query.eq("status", status)
        if email:
            query = query.ilike("email", f"%{email}%")
        return query.execute().data or [], None
    except Exception as e:
        logger.error(f"Error fetching invitations: {e}")
        return _db_error("Failed to fetch invitations", e)


def cancel_invitation(invitation_id):
    """Mark a pending invitation as canceled; other statuses are left untouched."""
    try:
        result = get_client().table("pending_invites").update({"status": "canceled"}).eq(
            "id", invitation_id
        ).eq("status", "pending").execute()
    except Exception as e:
        logger.error(f"Error canceling invitation {invitation_id}: {e}")
        return _db_error("Failed to cancel invitation", e)

    if not result.data:
        return _error(
            "Invitation not found or cannot be canceled",
            "The invitation may not exist or is not in pending status",
            "NOT_FOUND",
        )
    return result.data[0], None


def get_invitation(invitation_id):
    try:
        result = get_client().table("pending_invites").select("*").eq("id", invitation_id).execute()
    except Exception as e:
        return _db_error("Failed to fetch invitation", e)
    if not result.data:
        return _error("Invitation not found", None, "NOT_FOUND")
    return result.data[0], None


def get_team_details(team_ids):
    """Team name with its club and sport for each id, for the invitation list."""
    team_ids = list(team_ids or [])
    if not team_ids:
        return [], None
    try:
        result = get_client().table("teams").select(
            "id,name,clubs!inner(name,sports!inner(name))"
        ).in_("id", team_ids).execute()
    except Exception as e:
        return _db_error("Failed to fetch team details", e)

    details = []
    for team in result.data or []:
        club = team.get("clubs") or {}
        sport = club.get("sports") or {}
        details.append({
            "id": team["id"],
            "name": team.get("name"),
            "club_name": club.get("name"),
            "sport_name": sport.get("name"),
        })
    return details, None
