# Supabase data access layer for ClubManager
# This module centralizes all database access operations
# Architecture: Streamlit pages → utils.db → Supabase REST API (PostgREST)
# Other modules should not import Supabase directly, they should use functions from this module
#
# Errors from Supabase (postgrest APIError, network errors) are not swallowed here.
# Pages catch them in their event handlers and show them with utils.errors.

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import streamlit as st
from st_supabase_connection import SupabaseConnection
from supabase import create_client

from utils import statistics
from utils.periods import validate_fraction, validate_period

logger = logging.getLogger(__name__)

MATCH_COLUMNS = "id,team_id,opponent,match_date,location,notes,created_at"
PERIOD_COLUMNS = "match_id,player_id,period,fraction,position_id,field_zone,created_at"
PLAYER_COLUMNS = "id,team_id,full_name,jersey_number,user_id,created_at"
TEAM_COLUMNS = "id,name,created_at,club_id"
CLUB_COLUMNS = "id,name,created_at,sport_id"
SPORT_COLUMNS = "id,name,created_at"
TRAINING_COLUMNS = "id,team_id,session_date,notes,created_at"

# Parallel fetches are small and independent, a handful of threads is plenty
MAX_PARALLEL_FETCHES = 8

# Page size used when every team has to be listed
TEAM_PAGE_SIZE = 200

# CONNECTION

# Get a cached Supabase database connection
# Streamlit reruns the script on each interaction, so opening a new connection every time
# would kill performance. @st.cache_resource keeps a single connection per process.
# It is shared by every browser session and never holds a user login.
# Credentials come from [connections.supabase] in .streamlit/secrets.toml
@st.cache_resource
def supaconn():
    url = st.secrets["connections"]["supabase"]["url"]
    key = st.secrets["connections"]["supabase"]["key"]
    return st.connection("supabase", type=SupabaseConnection, url=url, key=key)


# Session state key holding the signed-in user's own client
USER_CLIENT_KEY = "auth_client"

# Worker threads have no Streamlit session, _parallel_map hands them the caller's client
_worker = threading.local()


def new_user_client():
    """Create an uncached Supabase client for one browser session."""
    url = st.secrets["connections"]["supabase"]["url"]
    key = st.secrets["connections"]["supabase"]["key"]
    return create_client(url, key)


def get_client():
    """Client for the current browser session.

    Signed-in sessions query through their own client so row level security
    sees their token. Anonymous sessions use the shared connection.
    """
    client = getattr(_worker, "client", None)
    if client is None:
        client = st.session_state.get(USER_CLIENT_KEY)
    if client is None:
        client = supaconn().client
    return client


# INTERNAL HELPERS

def _first(result):
    if result.data:
        return result.data[0]
    return None


def _rows(result):
    return result.data or []


def _rpc(name, params):
    return get_client().rpc(name, params).execute().data


def _parallel_map(func, items):
    items = list(items)
    if not items:
        return []
    client = get_client()

    def run(item):
        _worker.client = client
        try:
            return func(item)
        finally:
            _worker.client = None

    with ThreadPoolExecutor(max_workers=min(MAX_PARALLEL_FETCHES, len(items))) as pool:
        return list(pool.map(run, items))


def _range_bounds(start, end):
    if start < 0 or end < start:
        raise ValueError(f"Invalid range {start}..{end}")
    return start, end


# PROFILES

def get_profile(user_id):
    result = get_client().table("profiles").select("id,email,display_name,role,created_at").eq("id", user_id).execute()
    return _first(result)


# Return the role stored in profiles for the given auth user id, or None
def get_profile_role(user_id):
    result = get_client().table("profiles").select("role").eq("id", user_id).execute()
    row = _first(result)
    return row.get("role") if row else None


def get_profile_by_email(email):
    result = get_client().table("profiles").select("id,email,display_name,role").eq("email", email.lower()).execute()
    return _first(result)


def list_profiles(role=None):
    query = get_client().table("profiles").select("id,email,display_name,role,created_at").order("created_at", desc=True)
    if role:
        query = query.eq("role", role)
    return _rows(query.execute())


def update_profile(user_id, values):
    result = get_client().table("profiles").update(values).eq("id", user_id).execute()
    return _first(result)


def search_profiles(text, limit=20):
    result = get_client().table("profiles").select("id,display_name,email,role,created_at").ilike(
        "display_name", f"%{text}%"
    ).limit(limit).execute()
    return _rows(result)


# SPORTS, CLUBS, TEAMS

def list_sports(start=0, end=24):
    start, end = _range_bounds(start, end)
    result = get_client().table("sports").select(SPORT_COLUMNS).order("created_at", desc=True).range(start, end).execute()
    return _rows(result)


def create_sport(name):
    return _first(get_client().table("sports").insert({"name": name}).execute())


def update_sport(sport_id, name):
    return _first(get_client().table("sports").update({"name": name}).eq("id", sport_id).execute())


def delete_sport(sport_id):
    get_client().table("sports").delete().eq("id", sport_id).execute()


def list_clubs(start=0, end=24, sport_id=None):
    start, end = _range_bounds(start, end)
    query = get_client().table("clubs").select(CLUB_COLUMNS).order("created_at", desc=True).range(start, end)
    if sport_id:
        query = query.eq("sport_id", sport_id)
    return _rows(query.execute())


def create_club(name, sport_id):
    return _first(get_client().table("clubs").insert({"name": name, "sport_id": sport_id}).execute())


def update_club(club_id, name, sport_id):
    result = get_client().table("clubs").update({"name": name, "sport_id": sport_id}).eq("id", club_id).execute()
    return _first(result)


def delete_club(club_id):
    get_client().table("clubs").delete().eq("id", club_id).execute()


def list_teams(start=0, end=24, club_id=None):
    start, end = _range_bounds(start, end)
    query = get_client().table("teams").select(TEAM_COLUMNS).order("created_at", desc=True).range(start, end)
    if club_id:
        query = query.eq("club_id", club_id)
    return _rows(query.execute())


# Every team, read page by page so large installations are not cut off
def list_all_teams(club_id=None):
    teams = []
    start = 0
    while True:
        page = list_teams(start, start + TEAM_PAGE_SIZE - 1, club_id)
        teams.extend(page)
        if len(page) < TEAM_PAGE_SIZE:
            return teams
        start += TEAM_PAGE_SIZE


def get_teams_by_ids(team_ids):
    if not team_ids:
        return []
    result = get_client().table("teams").select(TEAM_COLUMNS).in_("id", list(team_ids)).execute()
    return _rows(result)


def create_team(name, club_id):
    return _first(get_client().table("teams").insert({"name": name, "club_id": club_id}).execute())


def update_team(team_id, name, club_id):
    result = get_client().table("teams").update({"name": name, "club_id": club_id}).eq("id", team_id).execute()
    return _first(result)


def delete_team(team_id):
    get_client().table("teams").delete().eq("id", team_id).execute()


# Teams where the user holds a coach/admin assignment in user_team_roles
def list_coach_teams(user_id):
    assignments = get_client().table("user_team_roles").select("team_id").eq("user_id", user_id).execute()
    team_ids = sorted({row["team_id"] for row in _rows(assignments)})
    teams = get_teams_by_ids(team_ids)
    return sorted(teams, key=lambda t: t.get("name") or "")


# USER TEAM ROLES

def list_team_assignments(team_id):
    result = get_client().table("user_team_roles").select("user_id,team_id,role,created_at").eq("team_id", team_id).execute()
    return _rows(result)


def get_display_names(user_ids):
    user_ids = sorted(set(user_ids))
    if not user_ids:
        return {}
    result = get_client().table("profiles").select("id,display_name").in_("id", user_ids).execute()
    return {row["id"]: row.get("display_name") for row in _rows(result)}


def add_team_assignment(user_id, team_id, role):
    values = {"user_id": user_id, "team_id": team_id, "role": role}
    return _first(get_client().table("user_team_roles").insert(values).execute())


def remove_team_assignment(user_id, team_id, role):
    get_client().table("user_team_roles").delete().match(
        {"user_id": user_id, "team_id": team_id, "role": role}
    ).execute()


# PLAYERS & POSITIONS

def list_players(team_id):
    result = get_client().table("players").select(PLAYER_COLUMNS).eq("team_id", team_id).order("jersey_number").execute()
    return _rows(result)


def get_player(player_id):
    return _first(get_client().table("players").select(PLAYER_COLUMNS).eq("id", player_id).execute())


# The player row linked to an auth user (player accounts)
def get_player_for_user(user_id):
    return _first(get_client().table("players").select(PLAYER_COLUMNS).eq("user_id", user_id).execute())


def create_player(team_id, full_name, jersey_number=None):
    values = {"team_id": team_id, "full_name": full_name, "jersey_number": jersey_number}
    return _first(get_client().table("players").insert(values).execute())


def update_player(player_id, values):
    return _first(get_client().table("players").update(values).eq("id", player_id).execute())


def delete_player(player_id):
    get_client().table("players").delete().eq("id", player_id).execute()


def list_positions():
    return _rows(get_client().table("positions").select("*").order("display_order").execute())


def create_position(name, display_order):
    values = {"name": name, "display_order": display_order}
    return _first(get_client().table("positions").insert(values).execute())


# MATCHES

def list_matches(team_id):
    result = get_client().table("matches").select(MATCH_COLUMNS).eq("team_id", team_id).order(
        "match_date", desc=True
    ).execute()
    return _rows(result)


def create_match(values):
    return _first(get_client().table("matches").insert(values).execute())


def update_match(match_id, values):
    # team_id and created_at are fixed once the match exists
    values = {k: v for k, v in values.items() if k not in ("id", "team_id", "created_at")}
    return _first(get_client().table("matches").update(values).eq("id", match_id).execute())


# Periods, call-ups, substitutions, results and goals are removed by the
# database's cascading foreign keys
def delete_match(match_id):
    get_client().table("matches").delete().eq("id", match_id).execute()


# PERIODS

def list_match_periods(match_id):
    result = get_client().table("match_player_periods").select(PERIOD_COLUMNS).eq("match_id", match_id).execute()
    return _rows(result)


# Record that a player played a quarter, fully or half
# A single upsert on (match_id, player_id, period) replaces any earlier row for
# the same key without leaving a gap between delete and insert
def upsert_match_period(match_id, player_id, period, fraction, position_id=None, field_zone=None):
    row = {
        "match_id": match_id,
        "player_id": player_id,
        "period": validate_period(period),
        "fraction": validate_fraction(fraction),
        "position_id": position_id,
        "field_zone": field_zone,
    }
    result = get_client().table("match_player_periods").upsert(
        row, on_conflict="match_id,player_id,period"
    ).execute()
    return _first(result)


# Move a player to the bench for one quarter
def clear_match_period(match_id, player_id, period):
    get_client().table("match_player_periods").delete().match(
        {"match_id": match_id, "player_id": player_id, "period": validate_period(period)}
    ).execute()


# CALL-UPS

def list_match_call_ups(match_id):
    result = get_client().table("match_call_ups").select("match_id,player_id,created_at").eq("match_id", match_id).execute()
    return _rows(result)


# Make the stored call-up set for a match exactly player_ids
# New players are upserted first, then only the players no longer selected are removed
def set_match_call_ups(match_id, player_ids):
    conn = get_client()
    wanted = sorted(set(player_ids))
    current = {row["player_id"] for row in list_match_call_ups(match_id)}
    removed = sorted(current - set(wanted))

    if wanted:
        rows = [{"match_id": match_id, "player_id": player_id} for player_id in wanted]
        conn.table("match_call_ups").upsert(rows, on_conflict="match_id,player_id").execute()
    if removed:
        conn.table("match_call_ups").delete().eq("match_id", match_id).in_("player_id", removed).execute()

    logger.info(f"Match {match_id}: {len(wanted)} players called up, {len(removed)} removed")
    return wanted


# Call-ups with the periods each called-up player has played
def list_match_call_ups_with_periods(match_id):
    call_ups = list_match_call_ups(match_id)
    periods = list_match_periods(match_id)
    by_player = {}
    for row in periods:
        by_player.setdefault(row["player_id"], []).append(row)
    return [
        {**call_up, "periods": sorted(by_player.get(call_up["player_id"], []), key=lambda p: p["period"])}
        for call_up in call_ups
    ]


# SUBSTITUTIONS

def list_match_substitutions(match_id, period=None):
    query = get_client().table("match_substitutions").select(
        "id,match_id,period,player_out,player_in,created_at"
    ).eq("match_id", match_id)
    if period is not None:
        query = query.eq("period", validate_period(period))
    return _rows(query.order("created_at").execute())


# The server procedure swaps the players and rewrites both period rows
# Its result is returned untouched
def apply_match_substitution(match_id, period, player_out, player_in):
    return _rpc("apply_match_substitution", {
        "p_match_id": match_id,
        "p_period": validate_period(period),
        "p_player_out": player_out,
        "p_player_in": player_in,
    })


def remove_match_substitution(match_id, period, player_out, player_in):
    return _rpc("remove_match_substitution", {
        "p_match_id": match_id,
        "p_period": validate_period(period),
        "p_player_out": player_out,
        "p_player_in": player_in,
    })


def validate_match_minimum_periods(match_id, min_periods):
    return _rpc("validate_match_minimum_periods", {
        "p_match_id": match_id,
        "p_min_periods": min_periods,
    })


# QUARTER RESULTS & GOALS

def list_match_quarter_results(match_id):
    result = get_client().table("match_quarter_results").select(
        "match_id,quarter,team_goals,opponent_goals"
    ).eq("match_id", match_id).order("quarter").execute()
    return _rows(result)


def upsert_match_quarter_result(match_id, quarter, team_goals, opponent_goals):
    if team_goals < 0 or opponent_goals < 0:
        raise ValueError("Goals cannot be negative")
    row = {
        "match_id": match_id,
        "quarter": validate_period(quarter),
        "team_goals": team_goals,
        "opponent_goals": opponent_goals,
    }
    result = get_client().table("match_quarter_results").upsert(row, on_conflict="match_id,quarter").execute()
    return _first(result)


# Quarter results for several matches, fetched in parallel
# Returns {match_id: [quarter rows]}
def get_quarter_results_for_matches(match_ids):
    match_ids = list(match_ids)
    results = _parallel_map(list_match_quarter_results, match_ids)
    return dict(zip(match_ids, results))


def list_match_goals(match_id):
    result = get_client().table("match_goals").select(
        "id,match_id,quarter,scorer_id,assister_id,created_at"
    ).eq("match_id", match_id).order("quarter").execute()
    return _rows(result)


def add_match_goal(match_id, quarter, scorer_id, assister_id=None):
    if assister_id is not None and assister_id == scorer_id:
        raise ValueError("A player cannot assist their own goal")
    row = {
        "match_id": match_id,
        "quarter": validate_period(quarter),
        "scorer_id": scorer_id,
        "assister_id": assister_id,
    }
    return _first(get_client().table("match_goals").insert(row).execute())


def delete_match_goal(goal_id):
    get_client().table("match_goals").delete().eq("id", goal_id).execute()


# TRAININGS

def list_training_sessions(team_id):
    result = get_client().table("training_sessions").select(TRAINING_COLUMNS).eq("team_id", team_id).order(
        "session_date", desc=True
    ).execute()
    return _rows(result)


def create_training_session(team_id, session_date, notes=None):
    values = {"team_id": team_id, "session_date": session_date, "notes": notes}
    return _first(get_client().table("training_sessions").insert(values).execute())


def update_training_session(training_id, values):
    return _first(get_client().table("training_sessions").update(values).eq("id", training_id).execute())


def delete_training_session(training_id):
    get_client().table("training_sessions").delete().eq("id", training_id).execute()


def list_training_attendance(training_id):
    result = get_client().table("training_attendance").select(
        "training_id,player_id,status,player:players(id,full_name,jersey_number)"
    ).eq("training_id", training_id).execute()
    return _rows(result)


ATTENDANCE_STATUSES = ("on_time", "late", "absent")


def upsert_training_attendance(training_id, player_id, status):
    if status not in ATTENDANCE_STATUSES:
        raise ValueError(f"Invalid attendance status: {status}")
    row = {"training_id": training_id, "player_id": player_id, "status": status}
    result = get_client().table("training_attendance").upsert(row, on_conflict="training_id,player_id").execute()
    return _first(result)


# All attendance rows for every training of a team
def get_team_attendance_stats(team_id):
    trainings = _rows(get_client().table("training_sessions").select("id").eq("team_id", team_id).execute())
    training_ids = [t["id"] for t in trainings]
    if not training_ids:
        return []
    result = get_client().table("training_attendance").select(
        "training_id,player_id,status,player:players(id,full_name,jersey_number)"
    ).in_("training_id", training_ids).execute()
    return _rows(result)


# STATISTICS

def get_team_player_statistics(team_id):
    return _rpc("get_team_player_statistics", {"p_team_id": team_id}) or []


def get_match_results(team_id):
    result = get_client().table("matches").select(
        "id,opponent,match_date,match_quarter_results(quarter,team_goals,opponent_goals)"
    ).eq("team_id", team_id).order("match_date", desc=True).execute()
    return statistics.build_match_results(_rows(result))


def get_team_overall_stats(team_id):
    match_results = get_match_results(team_id)
    trainings = get_client().table("training_sessions").select(
        "id,training_attendance(status)"
    ).eq("team_id", team_id).execute()
    return statistics.team_overall_stats(match_results, _rows(trainings))


def get_quarter_performance(team_id):
    result = get_client().table("matches").select(
        "id,match_quarter_results(quarter,team_goals,opponent_goals)"
    ).eq("team_id", team_id).execute()
    return statistics.quarter_performance(_rows(result))


def get_formation_statistics(team_id):
    result = get_client().table("matches").select(
        "id,opponent,match_date,"
        "match_quarter_results(quarter,team_goals,opponent_goals),"
        "match_player_periods(player_id,period,fraction)"
    ).eq("team_id", team_id).execute()
    return statistics.formation_statistics(_rows(result))


def get_player_goal_stats(team_id):
    players = list_players(team_id)
    goals = get_client().table("match_goals").select(
        "scorer_id,assister_id,matches!inner(team_id)"
    ).eq("matches.team_id", team_id).execute()
    return statistics.player_goal_stats(players, _rows(goals))


# EVALUATIONS

# Categories ordered by order_index, each with its criteria nested under "criteria"
def get_evaluation_structure():
    conn = get_client()
    categories = _rows(conn.table("evaluation_categories").select("*").order("order_index").execute())
    criteria = _rows(conn.table("evaluation_criteria").select("*").order("order_index").execute())
    return [
        {**category, "criteria": [c for c in criteria if c["category_id"] == category["id"]]}
        for category in categories
    ]


def _with_scores_and_coach(evaluation):
    conn = get_client()
    scores = _rows(conn.table("evaluation_scores").select("*").eq("evaluation_id", evaluation["id"]).execute())
    coach = None
    if evaluation.get("coach_id"):
        profile = _first(conn.table("profiles").select("display_name").eq("id", evaluation["coach_id"]).execute())
        if profile:
            coach = {"display_name": profile.get("display_name")}
    return {**evaluation, "scores": scores, "coach": coach}


# Evaluations for a player, newest first, each with scores and coach name
# Scores and coach profile are fetched in parallel per evaluation
def get_player_evaluations(player_id):
    evaluations = _rows(
        get_client().table("player_evaluations").select("*").eq("player_id", player_id).order(
            "evaluation_date", desc=True
        ).execute()
    )
    return _parallel_map(_with_scores_and_coach, evaluations)


def get_evaluation_by_id(evaluation_id):
    evaluation = _first(get_client().table("player_evaluations").select("*").eq("id", evaluation_id).execute())
    if not evaluation:
        return None
    return _with_scores_and_coach(evaluation)


def create_evaluation(player_id, evaluation_date, notes, coach_id):
    if not coach_id:
        raise PermissionError("Not authenticated")
    values = {
        "player_id": player_id,
        "coach_id": coach_id,
        "evaluation_date": evaluation_date,
        "notes": notes,
    }
    row = _first(get_client().table("player_evaluations").insert(values).execute())
    return row["id"] if row else None


# Create an evaluation together with its scores
# An insert that returns no row (hidden by row level security) raises LookupError before any score is written
def create_evaluation_with_scores(player_id, evaluation_date, notes, coach_id, scores):
    evaluation_id = create_evaluation(player_id, evaluation_date, notes, coach_id)
    if evaluation_id is None:
        raise LookupError("The evaluation was not saved")
    save_evaluation_scores(evaluation_id, scores)
    return evaluation_id


def update_evaluation(evaluation_id, evaluation_date, notes):
    values = {"evaluation_date": evaluation_date, "notes": notes}
    get_client().table("player_evaluations").update(values).eq("id", evaluation_id).execute()


def delete_evaluation(evaluation_id):
    get_client().table("player_evaluations").delete().eq("id", evaluation_id).execute()


# Replace the full score set of an evaluation
# The new scores are upserted first, then scores for criteria no longer present are deleted
def save_evaluation_scores(evaluation_id, scores):
    conn = get_client()
    rows = [
        {
            "evaluation_id": evaluation_id,
            "criterion_id": s["criterion_id"],
            "score": s["score"],
            "notes": s.get("notes") or None,
            "example_video_url": s.get("example_video_url") or None,
        }
        for s in scores
    ]
    existing = _rows(conn.table("evaluation_scores").select("criterion_id").eq("evaluation_id", evaluation_id).execute())
    stale = sorted({r["criterion_id"] for r in existing} - {r["criterion_id"] for r in rows})

    if rows:
        conn.table("evaluation_scores").upsert(rows, on_conflict="evaluation_id,criterion_id").execute()
    if stale:
        conn.table("evaluation_scores").delete().eq("evaluation_id", evaluation_id).in_("criterion_id", stale).execute()


# Players of the coach's teams that have at least one evaluation,
# most recently evaluated first
def get_players_with_evaluations(coach_id):
    teams = list_coach_teams(coach_id)
    if not teams:
        return []
    team_names = {t["id"]: t.get("name") for t in teams}

    players = _rows(
        get_client().table("players").select("id,full_name,jersey_number,team_id").in_(
            "team_id", list(team_names)
        ).execute()
    )
    if not players:
        return []

    evaluations = _rows(
        get_client().table("player_evaluations").select("player_id,evaluation_date").in_(
            "player_id", [p["id"] for p in players]
        ).execute()
    )
    summary = {}
    for ev in evaluations:
        entry = summary.setdefault(ev["player_id"], {"count": 0, "last": ev["evaluation_date"]})
        entry["count"] += 1
        if ev["evaluation_date"] > entry["last"]:
            entry["last"] = ev["evaluation_date"]

    result = [
        {
            "player_id": p["id"],
            "full_name": p["full_name"],
            "jersey_number": p.get("jersey_number"),
            "team_id": p["team_id"],
            "team_name": team_names.get(p["team_id"]) or "Unknown team",
            "evaluation_count": summary[p["id"]]["count"],
            "last_evaluation_date": summary[p["id"]]["last"],
        }
        for p in players
        if p["id"] in summary
    ]
    return sorted(result, key=lambda r: r["last_evaluation_date"], reverse=True)
