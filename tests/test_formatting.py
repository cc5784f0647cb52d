"""Tests for display formatting and table builders."""

from utils.formatting import (
    attendance_dataframe,
    format_attendance,
    format_date,
    format_fraction,
    format_player_name,
    format_quarters,
    format_result_badge,
    match_results_dataframe,
    period_grid_dataframe,
)


def test_format_date():
    assert format_date("2025-03-01") == "01.03.2025"
    assert format_date("2025-03-01T10:30:00Z", with_time=True) == "01.03.2025 10:30"
    assert format_date(None) == "N/A"


def test_small_formatters():
    assert format_fraction("FULL") == "●"
    assert format_fraction("HALF") == "½"
    assert format_fraction(None) == "–"
    assert format_quarters(2.0) == "2"
    assert format_quarters(1.5) == "1.5"
    assert format_attendance("late") == "🟡 Late"
    assert format_attendance(None) == "⚪ Not recorded"
    assert ">W<" in format_result_badge("win")
    assert "–" in format_result_badge(None)


def test_format_player_name():
    assert format_player_name({"full_name": "Ana", "jersey_number": 0}) == "#0 Ana"
    assert format_player_name({"full_name": "Ana", "jersey_number": None}) == "Ana"
    assert format_player_name(None) == "Unknown player"


def test_match_results_dataframe():
    frame = match_results_dataframe([
        {"match_date": "2024-03-01", "opponent": "A", "team_goals": 2, "opponent_goals": 1, "result": "win"},
        {"match_date": "2024-03-08", "opponent": "B", "team_goals": 0, "opponent_goals": 0, "result": None},
    ])
    assert list(frame["Score"]) == ["2 : 1", "–"]
    assert list(frame["Result"]) == ["W", "–"]
    assert match_results_dataframe([]).empty


def test_period_grid_dataframe():
    frame = period_grid_dataframe([
        {"full_name": "Ana", "jersey_number": 9, "q1": "FULL", "q2": "HALF", "q3": None, "q4": None, "total": 1.5},
    ])
    assert list(frame.columns) == ["Player", "Q1", "Q2", "Q3", "Q4", "Total"]
    assert frame.iloc[0].tolist() == ["#9 Ana", "●", "½", "–", "–", "1.5"]


def test_attendance_dataframe_rounds():
    frame = attendance_dataframe([
        {"full_name": "Ana", "jersey_number": 9, "on_time": 2, "late": 0, "absent": 1, "attendance_pct": 66.6667},
    ])
    assert frame.iloc[0]["Attendance %"] == 66.7
