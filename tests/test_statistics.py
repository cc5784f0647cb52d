"""Tests for the pure match and team statistics."""

import pytest

from utils.statistics import (
    aggregate_results,
    attendance_changes,
    build_match_results,
    formation_key,
    formation_statistics,
    match_result,
    player_attendance_summary,
    player_goal_stats,
    quarter_performance,
    sum_quarter_goals,
    team_overall_stats,
    training_attendance_rate,
)


def _match(match_id, quarters, periods=None, opponent="FC Test"):
    return {
        "id": match_id,
        "opponent": opponent,
        "match_date": f"2024-03-{match_id:02d}",
        "match_quarter_results": [
            {"quarter": q, "team_goals": t, "opponent_goals": o} for q, t, o in quarters
        ],
        "match_player_periods": periods or [],
    }


class TestMatchResult:
    def test_classification(self):
        assert match_result(3, 1) == "win"
        assert match_result(2, 2) == "draw"
        assert match_result(0, 1) == "loss"

    def test_sum_quarter_goals_treats_missing_as_zero(self):
        rows = [{"team_goals": 2, "opponent_goals": None}, {"team_goals": 1}]
        assert sum_quarter_goals(rows) == (3, 0)
        assert sum_quarter_goals(None) == (0, 0)


class TestBuildMatchResults:
    def test_sums_quarters_per_match(self):
        results = build_match_results([
            _match(1, [(1, 1, 0), (2, 0, 1), (3, 2, 0), (4, 0, 0)]),
            _match(2, [(1, 0, 2)]),
        ])
        assert results[0]["team_goals"] == 3
        assert results[0]["opponent_goals"] == 1
        assert results[0]["result"] == "win"
        assert results[1]["result"] == "loss"

    def test_match_without_quarters_has_no_result(self):
        (result,) = build_match_results([_match(3, [])])
        assert result["result"] is None
        assert result["team_goals"] == 0


class TestAggregateResults:
    def test_counts_add_up_to_total(self):
        results = build_match_results([
            _match(1, [(1, 2, 0)]),
            _match(2, [(1, 1, 1)]),
            _match(3, [(1, 0, 3)]),
            _match(4, []),
        ])
        stats = aggregate_results(results)
        assert stats["total_matches"] == 3
        assert stats["wins"] + stats["draws"] + stats["losses"] == stats["total_matches"]
        assert stats["total_goals_scored"] == 3
        assert stats["total_goals_conceded"] == 4
        assert stats["goal_difference"] == -1
        assert stats["win_percentage"] == pytest.approx(100 / 3)
        assert stats["avg_goals_per_match"] == pytest.approx(1.0)

    def test_no_matches(self):
        stats = aggregate_results([])
        assert stats["total_matches"] == 0
        assert stats["win_percentage"] == 0.0
        assert stats["avg_goals_per_match"] == 0.0


class TestTrainingAttendance:
    def test_late_counts_as_attended(self):
        trainings = [
            {"id": 1, "training_attendance": [{"status": "on_time"}, {"status": "late"}]},
            {"id": 2, "training_attendance": [{"status": "absent"}, {"status": "on_time"}]},
        ]
        assert training_attendance_rate(trainings) == pytest.approx(75.0)

    def test_overall_stats_include_trainings(self):
        trainings = [{"id": 1, "training_attendance": []}]
        stats = team_overall_stats([], trainings)
        assert stats["total_trainings"] == 1
        assert stats["avg_training_attendance"] == 0.0


class TestQuarterPerformance:
    def test_always_four_quarters(self):
        rows = quarter_performance([])
        assert [r["quarter"] for r in rows] == [1, 2, 3, 4]
        assert all(r["wins"] == r["losses"] == r["draws"] == 0 for r in rows)

    def test_accumulates_per_quarter(self):
        rows = quarter_performance([
            _match(1, [(1, 2, 0), (2, 1, 1)]),
            _match(2, [(1, 0, 1), (5, 9, 9)]),
        ])
        first = rows[0]
        assert first["wins"] == 1
        assert first["losses"] == 1
        assert first["total_goals_scored"] == 2
        assert first["total_goals_conceded"] == 1
        assert first["goal_difference"] == 1
        assert rows[1]["draws"] == 1


class TestFormations:
    def test_formation_key_counts_first_quarter_players(self):
        periods = [
            {"player_id": 1, "period": 1},
            {"player_id": 2, "period": 1},
            {"player_id": 2, "period": 2},
            {"player_id": 3, "period": 2},
        ]
        assert formation_key(periods) == "2 players"
        assert formation_key([]) == "No formation"

    def test_sorted_by_win_percentage(self):
        seven = [{"player_id": i, "period": 1} for i in range(7)]
        six = [{"player_id": i, "period": 1} for i in range(6)]
        rows = formation_statistics([
            _match(1, [(1, 0, 2)], periods=six),
            _match(2, [(1, 3, 0)], periods=seven),
            _match(3, [(1, 1, 1)], periods=seven),
        ])
        assert [r["formation_key"] for r in rows] == ["7 players", "6 players"]
        assert rows[0]["matches_played"] == 2
        assert rows[0]["win_percentage"] == pytest.approx(50.0)
        assert rows[1]["win_percentage"] == 0.0


class TestPlayerStats:
    def test_goal_stats_only_lists_contributors(self):
        players = [
            {"id": 1, "full_name": "Ana", "jersey_number": 9},
            {"id": 2, "full_name": "Bea", "jersey_number": 10},
            {"id": 3, "full_name": "Cleo", "jersey_number": 4},
        ]
        goals = [
            {"scorer_id": 1, "assister_id": 2},
            {"scorer_id": 1, "assister_id": None},
            {"scorer_id": 2, "assister_id": 1},
            {"scorer_id": 99, "assister_id": 2},
        ]
        stats = player_goal_stats(players, goals)
        assert [s["player_id"] for s in stats] == [1, 2]
        assert stats[0]["total_goals"] == 2
        assert stats[0]["total_assists"] == 1
        assert stats[1]["total_goals"] == 1
        assert stats[1]["total_assists"] == 2

    def test_attendance_summary(self):
        rows = [
            {"player_id": 1, "status": "on_time", "player": {"full_name": "Ana", "jersey_number": 9}},
            {"player_id": 1, "status": "absent", "player": {"full_name": "Ana", "jersey_number": 9}},
            {"player_id": 2, "status": "late", "player": {"full_name": "Bea", "jersey_number": 10}},
        ]
        summary = player_attendance_summary(rows)
        assert [s["player_id"] for s in summary] == [2, 1]
        ana = summary[1]
        assert ana["full_name"] == "Ana"
        assert ana["total"] == 2
        assert ana["attendance_pct"] == pytest.approx(50.0)

    def test_attendance_changes_skip_unmarked_players(self):
        chosen = {1: "late", 2: None, 3: None, 4: "absent"}
        assert attendance_changes({}, chosen) == {1: "late", 4: "absent"}

    def test_attendance_changes_only_include_edits(self):
        recorded = {1: "on_time", 2: "late"}
        chosen = {1: "on_time", 2: "absent", 3: None}
        assert attendance_changes(recorded, chosen) == {2: "absent"}
