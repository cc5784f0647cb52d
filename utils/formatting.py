"""
================================================================================
HTML AND FORMATTING UTILITIES
================================================================================

Purpose: Small formatting helpers for match results, quarter fractions, dates
and attendance, plus builders for the pandas DataFrames the pages show with
st.dataframe(). Badges are HTML strings rendered with st.markdown() and
unsafe_allow_html=True and never contain user-provided text.
================================================================================
"""

from datetime import date, datetime

import pandas as pd

from utils.periods import PERIODS

RESULT_STYLES = {
    'win': ('W', 'background-color: #dcfce7; color: #166534;'),
    'draw': ('D', 'background-color: #fef9c3; color: #854d0e;'),
    'loss': ('L', 'background-color: #fee2e2; color: #991b1b;'),
}

ATTENDANCE_LABELS = {
    'on_time': '🟢 On time',
    'late': '🟡 Late',
    'absent': '🔴 Absent',
}


def parse_date(value):
    """Parse an ISO date or datetime string from Supabase.

    Example:
        >>> parse_date("2025-03-01T10:30:00Z")
        datetime.datetime(2025, 3, 1, 10, 30, tzinfo=datetime.timezone.utc)
        >>> parse_date("2025-03-01")
        datetime.datetime(2025, 3, 1, 0, 0)
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


def format_date(value, with_time=False):
    """Format a date for display, 'N/A' when missing.

    Example:
        >>> format_date("2025-03-01T10:30:00Z", with_time=True)
        '01.03.2025 10:30'
    """
    parsed = parse_date(value)
    if parsed is None:
        return "N/A"
    return parsed.strftime('%d.%m.%Y %H:%M' if with_time else '%d.%m.%Y')


def format_score(team_goals, opponent_goals):
    return f"{team_goals} : {opponent_goals}"


def format_result_badge(result):
    """HTML badge for a match result; an empty grey badge when no result exists yet."""
    if result not in RESULT_STYLES:
        return '<span style="padding: 2px 8px; border-radius: 6px; background-color: #f3f4f6; color: #374151;">–</span>'
    letter, style = RESULT_STYLES[result]
    return f'<span style="padding: 2px 8px; border-radius: 6px; font-weight: 700; {style}">{letter}</span>'


def format_fraction(fraction):
    """Quarter cell text: full quarter, half quarter or not played.

    Example:
        >>> format_fraction('HALF')
        '½'
        >>> format_fraction(None)
        '–'
    """
    return {'FULL': '●', 'HALF': '½'}.get(fraction, '–')


def format_quarters(total):
    """Quarters played as text, without a trailing '.0' for whole numbers."""
    if total == int(total):
        return str(int(total))
    return f"{total:.1f}"


def format_attendance(status):
    return ATTENDANCE_LABELS.get(status, '⚪ Not recorded')


def format_player_name(player):
    """'#7 Jane Doe', or just the name when there is no jersey number."""
    if not player:
        return "Unknown player"
    name = player.get("full_name") or "Unknown player"
    number = player.get('jersey_number')
    return f"#{number} {name}" if number is not None else name


# =============================================================================
# DATAFRAMES
# =============================================================================

def match_results_dataframe(match_results):
    """One row per match with date, opponent, score and result letter."""
    rows = []
    for m in match_results:
        result = m.get('result')
        rows.append({
            'Date': format_date(m.get('match_date')),
            'Opponent': m.get('opponent'),
            'Score': format_score(m.get('team_goals', 0), m.get('opponent_goals', 0)) if result else '–',
            'Result': RESULT_STYLES[result][0] if result in RESULT_STYLES else '–',
        })
    return pd.DataFrame(rows, columns=['Date', 'Opponent', 'Score', 'Result'])


def period_grid_dataframe(grid_rows):
    """Player x quarter table built from ``utils.periods.period_grid``."""
    columns = ['Player'] + [f'Q{p}' for p in PERIODS] + ['Total']
    rows = []
    for row in grid_rows:
        entry = {'Player': format_player_name({'full_name': row['full_name'], 'jersey_number': row['jersey_number']})}
        for p in PERIODS:
            entry[f'Q{p}'] = format_fraction(row.get(f'q{p}'))
        entry['Total'] = format_quarters(row['total'])
        rows.append(entry)
    return pd.DataFrame(rows, columns=columns)


def attendance_dataframe(summary_rows):
    rows = [{
        'Player': format_player_name(r),
        'On time': r['on_time'],
        'Late': r['late'],
        'Absent': r['absent'],
        'Attendance %': round(r['attendance_pct'], 1),
    } for r in summary_rows]
    return pd.DataFrame(rows, columns=['Player', 'On time', 'Late', 'Absent', 'Attendance %'])
