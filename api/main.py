"""
FastAPI invite-user function
Hosted on Vercel (see api/index.py)

A super admin posts {email, display_name?, role, teamIds, playerId?, redirectTo?}.
The function creates the account if needed, generates a password-recovery link
and records a pending invitation keyed by email. Each check answers immediately
with its own status code. A user created before a later step fails is not
removed again.
"""
import logging
import os

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from supabase import Client, create_client

from data.roles import INVITABLE_ROLES, AppRole
from data.security import is_valid_email, redact_sensitive

load_dotenv()

logger = logging.getLogger(__name__)

app = FastAPI(title="ClubManager Invite Function")

DEFAULT_REDIRECT_URL = "http://localhost:8501"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_admin_client() -> Client:
    """Service-role Supabase client, one per request"""
    supabase_url = os.environ.get("SUPABASE_URL")
    supabase_key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    if not supabase_url or not supabase_key:
        raise HTTPException(status_code=500, detail="Missing Supabase credentials")
    return create_client(supabase_url, supabase_key)


def _reply(status_code: int, payload: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload, headers=CORS_HEADERS)


def _fail(status_code: int, error: str) -> JSONResponse:
    return _reply(status_code, {"ok": False, "error": error})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _fail(exc.status_code, str(exc.detail))


@app.get("/")
async def root():
    return {"message": "ClubManager Invite Function", "version": "1.0.0"}


@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}


def _bearer_token(request: Request):
    header = request.headers.get("authorization")
    if not header:
        return None
    return header.replace("Bearer ", "", 1).strip()


def _first_row(result):
    return result.data[0] if result.data else None


def _check_player(admin: Client, body: dict):
    """Validate a player invitation; returns an error response or None"""
    player_id = body.get("playerId")
    if player_id is None:
        return _fail(400, "playerId is required for player invitations")

    player = _first_row(
        admin.table("players").select("id,team_id,user_id").eq("id", player_id).limit(1).execute()
    )
    if not player:
        return _fail(404, "Player not found")
    if player.get("user_id"):
        return _fail(400, "This player already has a linked account")
    if list(body["teamIds"]) != [player["team_id"]]:
        return _fail(400, "Player must be assigned to their team only")
    return None


async def _invite(request: Request, admin: Client):
    if request.method == "OPTIONS":
        return PlainTextResponse("ok", headers=CORS_HEADERS)
    if request.method != "POST":
        return _fail(405, "Method not allowed")

    token = _bearer_token(request)
    if not token:
        return _fail(401, "Authorization header required")

    # Any failure while verifying the token means the caller is not authenticated
    try:
        caller = admin.auth.get_user(token).user
    except Exception as e:
        logger.info(f"Token verification failed: {e}")
        caller = None
    if caller is None:
        return _fail(401, "Invalid or expired token")

    try:
        profile = _first_row(admin.table("profiles").select("role").eq("id", caller.id).limit(1).execute())
    except Exception as e:
        logger.warning(f"Could not load caller profile: {e}")
        profile = None
    if not profile or profile.get("role") != AppRole.SUPER_ADMIN.value:
        return _fail(403, "Insufficient permissions. Super Admin role required.")

    try:
        body = await request.json()
    except ValueError:
        return _fail(400, "Invalid JSON body")
    if not isinstance(body, dict):
        return _fail(400, "Invalid JSON body")

    email = body.get("email")
    role = body.get("role")
    team_ids = body.get("teamIds")
    if not email or not role or not isinstance(team_ids, list) or not team_ids:
        return _fail(400, "Missing required fields: email, role, and teamIds are required")

    if role not in INVITABLE_ROLES:
        return _fail(400, 'Invalid role. Must be "coach", "admin", or "player"')

    if role == AppRole.PLAYER.value:
        failure = _check_player(admin, body)
        if failure is not None:
            return failure

    if not is_valid_email(email):
        return _fail(400, "Invalid email format")

    try:
        teams = admin.table("teams").select("id").in_("id", team_ids).execute().data or []
    except Exception as e:
        logger.error(f"Team lookup failed: {e}")
        return _fail(500, "Failed to validate team IDs")
    if len(teams) != len(set(team_ids)):
        return _fail(400, "One or more team IDs are invalid")

    normalized_email = email.lower()
    existing = _first_row(
        admin.table("profiles").select("id").eq("email", normalized_email).limit(1).execute()
    )
    if existing:
        user_id = existing["id"]
    else:
        display_name = body.get("display_name") or email.split("@")[0]
        try:
            created = admin.auth.admin.create_user({
                "email": email,
                "email_confirm": True,
                "user_metadata": {"display_name": display_name},
            })
            new_user = created.user
        except Exception as e:
            logger.error(f"User creation failed: {e}")
            return _fail(500, f"Failed to create user: {e}")
        if new_user is None:
            return _fail(500, "Failed to create user: Unknown error")
        user_id = new_user.id

    redirect_to = body.get("redirectTo") or os.environ.get("REDIRECT_URL") or DEFAULT_REDIRECT_URL
    try:
        link = admin.auth.admin.generate_link({
            "type": "recovery",
            "email": email,
            "options": {"redirect_to": redirect_to},
        })
        action_link = link.properties.action_link if link and link.properties else None
    except Exception as e:
        logger.error(f"Link generation failed: {e}")
        return _fail(500, f"Failed to generate invitation link: {e}")
    if not action_link:
        return _fail(500, "Failed to generate invitation link: Unknown error")

    invite = {
        "email": normalized_email,
        "display_name": body.get("display_name"),
        "role": role,
        "team_ids": team_ids,
        "status": "pending",
        "created_by": caller.id,
    }
    if role == AppRole.PLAYER.value and body.get("playerId"):
        invite["player_id"] = body["playerId"]

    try:
        admin.table("pending_invites").upsert(invite, on_conflict="email").execute()
    except Exception as e:
        logger.error(f"Invitation record failed: {e}")
        return _fail(500, f"Failed to create invitation record: {e}")

    logger.info(f"Invitation ready {redact_sensitive({'user_id': user_id, 'role': role, 'action_link': action_link})}")
    return _reply(200, {"ok": True, "action_link": action_link})


@app.api_route("/invite-user", methods=ALL_METHODS)
@app.api_route("/api/invite-user", methods=ALL_METHODS)
async def invite_user(request: Request, admin: Client = Depends(get_admin_client)):
    try:
        return await _invite(request, admin)
    except Exception:
        logger.exception("Unexpected error in invite-user")
        return _fail(500, "Internal server error")
