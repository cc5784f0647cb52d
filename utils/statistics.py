"""
================================================================================
MATCH AND TEAM STATISTICS
================================================================================

Purpose: Pure aggregation over already-fetched match, quarter, goal and
training rows. Nothing in here talks to Supabase; ``utils.db`` fetches the
rows and hands them to these functions so they can be tested in isolation.

Rows are plain dictionaries shaped like the Supabase responses, e.g. a match
row may carry a nested ``match_quarter_results`` list.
================================================================================
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

QUARTERS = (1, 2, 3, 4)
ATTENDED_STATUSES = ("on_time", "late")


def match_result(team_goals: int, opponent_goals: int) -> str:
    """Classify a score line as ``'win'``, ``'draw'`` or ``'loss'``.

    Example:
        >>> match_result(3, 1)
        'win'
        >>> match_result(2, 2)
        'draw'
    """
    if team_goals > opponent_goals:
        return "win"
    if team_goals == opponent_goals:
        return "draw"
    return "loss"


def sum_quarter_goals(quarter_results: Optional[Iterable[Dict[str, Any]]]) -> Tuple[int, int]:
    """Return ``(team_goals, opponent_goals)`` summed over the quarter rows."""
    team_goals = 0
    opponent_goals = 0
    for qr in quarter_results or []:
        team_goals += qr.get("team_goals") or 0
        opponent_goals += qr.get("opponent_goals") or 0
    return team_goals, opponent_goals


def _percentage(part, whole) -> float:
    return (part / whole) * 100 if whole else 0.0


# =============================================================================
# MATCH RESULTS
# =============================================================================

def build_match_results(matches: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Build one result row per match from its nested quarter results.

    A match without any recorded quarter has ``result`` set to ``None``; it
    is still listed but does not count as played.
    """
    results = []
    for match in matches:
        quarters = match.get("match_quarter_results") or []
        team_goals, opponent_goals = sum_quarter_goals(quarters)
        results.append({
            "match_id": match.get("id"),
            "opponent": match.get("opponent"),
            "match_date": match.get("match_date"),
            "team_goals": team_goals,
            "opponent_goals": opponent_goals,
            "result": match_result(team_goals, opponent_goals) if quarters else None,
        })
    return results


def aggregate_results(match_results: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Reduce match result rows to win/draw/loss counts and goal totals.

    Only rows with a non-null ``result`` are counted, so
    ``wins + draws + losses == total_matches`` always holds.
    """
    played = [m for m in match_results if m.get("result") is not None]
    wins = sum(1 for m in played if m["result"] == "win")
    draws = sum(1 for m in played if m["result"] == "draw")
    losses = sum(1 for m in played if m["result"] == "loss")
    goals_for = sum(m.get("team_goals", 0) for m in played)
    goals_against = sum(m.get("opponent_goals", 0) for m in played)
    total = len(played)

    return {
        "total_matches": total,
        "wins": wins,
        "draws": draws,
        "losses": losses,
        "win_percentage": _percentage(wins, total),
        "total_goals_scored": goals_for,
        "total_goals_conceded": goals_against,
        "goal_difference": goals_for - goals_against,
        "avg_goals_per_match": goals_for / total if total else 0.0,
    }


def training_attendance_rate(trainings: Iterable[Dict[str, Any]]) -> float:
    """Percentage of attendance rows marked on time or late."""
    attended = 0
    possible = 0
    for training in trainings:
        rows = training.get("training_attendance") or []
        possible += len(rows)
        attended += sum(1 for row in rows if row.get("status") in ATTENDED_STATUSES)
    return _percentage(attended, possible)


def team_overall_stats(match_results, trainings) -> Dict[str, Any]:
    trainings = list(trainings)
    stats = aggregate_results(match_results)
    stats["total_trainings"] = len(trainings)
    stats["avg_training_attendance"] = training_attendance_rate(trainings)
    return stats


# =============================================================================
# QUARTERS AND FORMATIONS
# =============================================================================

def _empty_record() -> Dict[str, Any]:
    return {
        "wins": 0,
        "draws": 0,
        "losses": 0,
        "total_goals_scored": 0,
        "total_goals_conceded": 0,
        "goal_difference": 0,
    }


def _add_score(record, team_goals, opponent_goals):
    record["total_goals_scored"] += team_goals
    record["total_goals_conceded"] += opponent_goals
    record["goal_difference"] += team_goals - opponent_goals
    outcome = match_result(team_goals, opponent_goals)
    # 'win' -> 'wins', 'draw' -> 'draws', 'loss' -> 'losses'
    key = "losses" if outcome == "loss" else outcome + "s"
    record[key] += 1


def quarter_performance(matches: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Goals and W/D/L per quarter across all matches.

    Always returns four rows (quarters 1 to 4). Rows for unknown quarter
    numbers are ignored.
    """
    per_quarter = {q: dict(quarter=q, **_empty_record()) for q in QUARTERS}
    for match in matches:
        for qr in match.get("match_quarter_results") or []:
            record = per_quarter.get(qr.get("quarter"))
            if record is None:
                continue
            _add_score(record, qr.get("team_goals") or 0, qr.get("opponent_goals") or 0)
    return [per_quarter[q] for q in QUARTERS]


def formation_key(period_rows: Iterable[Dict[str, Any]]) -> str:
    starters = {p["player_id"] for p in period_rows if p.get("period") == 1}
    return f"{len(starters)} players" if starters else "No formation"


def formation_statistics(matches: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Match outcomes grouped by how many players started the first quarter.

    Sorted by win percentage, best first.
    """
    formations: Dict[str, Dict[str, Any]] = {}
    for match in matches:
        key = formation_key(match.get("match_player_periods") or [])
        record = formations.setdefault(key, dict(formation_key=key, matches_played=0, **_empty_record()))
        team_goals, opponent_goals = sum_quarter_goals(match.get("match_quarter_results"))
        record["matches_played"] += 1
        _add_score(record, team_goals, opponent_goals)

    for record in formations.values():
        record["win_percentage"] = _percentage(record["wins"], record["matches_played"])

    return sorted(formations.values(), key=lambda r: r["win_percentage"], reverse=True)


# =============================================================================
# PLAYERS
# =============================================================================

def player_goal_stats(players, goals) -> List[Dict[str, Any]]:
    """Goals and assists per player of the team.

    Goals by players outside ``players`` are ignored. Only players with at
    least one goal or assist are returned, ordered by goals plus assists and
    then by goals.
    """
    stats = {
        p["id"]: {
            "player_id": p["id"],
            "full_name": p.get("full_name"),
            "jersey_number": p.get("jersey_number"),
            "total_goals": 0,
            "total_assists": 0,
        }
        for p in players
    }

    for goal in goals:
        scorer = stats.get(goal.get("scorer_id"))
        if scorer:
            scorer["total_goals"] += 1
        assister_id = goal.get("assister_id")
        if assister_id and assister_id in stats:
            stats[assister_id]["total_assists"] += 1

    active = [s for s in stats.values() if s["total_goals"] or s["total_assists"]]
    return sorted(
        active,
        key=lambda s: (s["total_goals"] + s["total_assists"], s["total_goals"]),
        reverse=True,
    )


def player_attendance_summary(attendance_rows) -> List[Dict[str, Any]]:
    """Per-player training attendance from joined attendance rows."""
    summary = defaultdict(lambda: {"on_time": 0, "late": 0, "absent": 0})
    names = {}
    for row in attendance_rows:
        player_id = row.get("player_id")
        status = row.get("status")
        if status in ("on_time", "late", "absent"):
            summary[player_id][status] += 1
        player = row.get("player") or {}
        names[player_id] = (player.get("full_name"), player.get("jersey_number"))

    result = []
    for player_id, counts in summary.items():
        total = counts["on_time"] + counts["late"] + counts["absent"]
        full_name, jersey_number = names.get(player_id, (None, None))
        result.append({
            "player_id": player_id,
            "full_name": full_name,
            "jersey_number": jersey_number,
            **counts,
            "total": total,
            "attendance_pct": _percentage(counts["on_time"] + counts["late"], total),
        })
    return sorted(result, key=lambda r: r["attendance_pct"], reverse=True)


def attendance_changes(recorded, chosen) -> Dict[Any, str]:
    """Statuses to write after the attendance form is submitted.

    ``chosen`` maps player id to the selected status, or None for players
    the coach left unmarked. Unmarked players and unchanged statuses are
    skipped, so saving never records attendance nobody entered.
    """
    return {
        player_id: status
        for player_id, status in chosen.items()
        if status in ("on_time", "late", "absent") and recorded.get(player_id) != status
    }
