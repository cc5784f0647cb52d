"""Period (quarter) accounting for match lineups.

A player's participation in a quarter is stored as a ``match_player_periods``
row with a fraction of ``FULL`` or ``HALF``. Substitutions are applied on the
server by ``apply_match_substitution``, which leaves both players with
``HALF`` in that quarter. The helpers here only read those rows; they never
decide what the server stores.
"""

from collections import defaultdict
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

PERIODS = (1, 2, 3, 4)
MAX_PERIODS = len(PERIODS)

# Players on the field at once, and the call-up size needed before
# positions can be assigned.
MAX_FIELD_PLAYERS = 7
MIN_CALL_UPS = 7


# Field zones for a 7-a-side lineup, goalkeeper first
FIELD_ZONES = [
    "GOALKEEPER",
    "LEFT_BACK",
    "CENTRE_BACK",
    "RIGHT_BACK",
    "LEFT_MIDFIELD",
    "CENTRE_MIDFIELD",
    "RIGHT_MIDFIELD",
    "LEFT_FORWARD",
    "CENTRE_FORWARD",
    "RIGHT_FORWARD",
]

# zone -> name of the row in ``positions`` assigned when a player is placed there
ZONE_POSITION_NAMES = {
    "GOALKEEPER": "Goalkeeper",
    "LEFT_BACK": "Defender",
    "CENTRE_BACK": "Defender",
    "RIGHT_BACK": "Defender",
    "LEFT_MIDFIELD": "Midfielder",
    "CENTRE_MIDFIELD": "Midfielder",
    "RIGHT_MIDFIELD": "Midfielder",
    "LEFT_FORWARD": "Forward",
    "CENTRE_FORWARD": "Forward",
    "RIGHT_FORWARD": "Forward",
}


class PeriodFraction(str, Enum):
    FULL = "FULL"
    HALF = "HALF"


FRACTION_WEIGHTS = {
    PeriodFraction.FULL.value: 1.0,
    PeriodFraction.HALF.value: 0.5,
}


class SubstitutionError(ValueError):
    pass


def validate_period(period) -> int:
    if isinstance(period, bool) or period not in PERIODS:
        raise ValueError(f"Period must be one of {PERIODS}, got {period!r}")
    return period


def validate_fraction(fraction) -> str:
    value = fraction.value if isinstance(fraction, PeriodFraction) else fraction
    if value not in FRACTION_WEIGHTS:
        raise ValueError(f"Fraction must be FULL or HALF, got {fraction!r}")
    return value


def fraction_weight(fraction) -> float:
    return FRACTION_WEIGHTS.get(fraction, 0.0)


def periods_by_player(periods: Iterable[dict]) -> Dict[int, Dict[int, str]]:
    """Map ``player_id -> {period: fraction}``.

    If the same (player, period) appears twice the last row wins, matching
    the replace semantics of the store.
    """
    result: Dict[int, Dict[int, str]] = defaultdict(dict)
    for row in periods:
        result[row["player_id"]][row["period"]] = row["fraction"]
    return dict(result)


def periods_played(periods: Iterable[dict], player_id) -> float:
    """Total quarters played by ``player_id`` (FULL = 1, HALF = 0.5)."""
    by_period = periods_by_player(periods).get(player_id, {})
    return sum(fraction_weight(f) for f in by_period.values())


def check_period_totals(periods: Iterable[dict]) -> Dict[int, float]:
    """Return players whose total exceeds the number of quarters."""
    over = {}
    for player_id, by_period in periods_by_player(periods).items():
        total = sum(fraction_weight(f) for f in by_period.values())
        if total > MAX_PERIODS:
            over[player_id] = total
    return over


def players_below_minimum(call_up_ids: Iterable, periods: Iterable[dict], min_periods: float) -> Dict[int, float]:
    """Called-up players who played fewer than ``min_periods`` quarters.

    This is a local preview of ``validate_match_minimum_periods``; the
    server's answer is the one that counts.
    """
    by_player = periods_by_player(periods)
    below = {}
    for player_id in call_up_ids:
        total = sum(fraction_weight(f) for f in by_player.get(player_id, {}).values())
        if total < min_periods:
            below[player_id] = total
    return below


def can_assign_positions(call_up_count: int) -> bool:
    return call_up_count >= MIN_CALL_UPS


def build_lineup(called_up_ids: Iterable, periods: Iterable[dict], substitutions: Iterable[dict],
                 period: int) -> Tuple[List[int], List[int]]:
    """Split called-up players into field and bench for one quarter.

    - FULL and not substituted out: field
    - HALF and substituted in: field
    - HALF and substituted out, or no row for the quarter: bench

    Order follows ``called_up_ids``.
    """
    validate_period(period)
    fractions = {
        row["player_id"]: row["fraction"]
        for row in periods
        if row.get("period") == period
    }
    quarter_subs = [s for s in substitutions if s.get("period", period) == period]
    players_out = {s["player_out"] for s in quarter_subs}
    players_in = {s["player_in"] for s in quarter_subs}

    field: List[int] = []
    bench: List[int] = []
    for player_id in called_up_ids:
        fraction = fractions.get(player_id)
        if fraction == PeriodFraction.FULL.value and player_id not in players_out:
            field.append(player_id)
        elif fraction == PeriodFraction.HALF.value and player_id in players_in:
            field.append(player_id)
        elif fraction == PeriodFraction.HALF.value and player_id in players_out:
            bench.append(player_id)
        elif fraction is None:
            bench.append(player_id)
    return field, bench


def validate_substitution(field_ids: Iterable, bench_ids: Iterable, player_a, player_b) -> Tuple[int, int]:
    """Order two selected players as ``(player_out, player_in)``.

    One must be on the field and the other on the bench.
    """
    field: Set = set(field_ids)
    bench: Set = set(bench_ids)
    if player_a == player_b:
        raise SubstitutionError("Select two different players")
    a_on_field = player_a in field
    b_on_field = player_b in field
    if a_on_field == b_on_field:
        raise SubstitutionError("Select one player from the field and one from the bench")
    player_out, player_in = (player_a, player_b) if a_on_field else (player_b, player_a)
    if player_in not in bench:
        raise SubstitutionError("The incoming player is not on the bench")
    return player_out, player_in


def can_place_on_field(field_ids: Iterable, player_id) -> bool:
    field = list(field_ids)
    return player_id in field or len(field) < MAX_FIELD_PLAYERS


def period_grid(players: Iterable[dict], periods: Iterable[dict]) -> List[dict]:
    """One row per player with the fraction for each quarter and the total.

    Used by the match detail table.
    """
    by_player = periods_by_player(periods)
    rows = []
    for player in players:
        played = by_player.get(player["id"], {})
        row = {
            "player_id": player["id"],
            "full_name": player.get("full_name"),
            "jersey_number": player.get("jersey_number"),
        }
        for p in PERIODS:
            row[f"q{p}"] = played.get(p)
        row["total"] = sum(fraction_weight(f) for f in played.values())
        rows.append(row)
    return rows


def zone_for_new_player(existing_zones: Iterable[Optional[str]], zones: Optional[List[str]] = None) -> Optional[str]:
    """First field zone not already taken, or None when all are used."""
    taken = set(existing_zones)
    for zone in zones or FIELD_ZONES:
        if zone not in taken:
            return zone
    return None


def position_id_for_zone(zone: str, positions: Iterable[dict]) -> Optional[int]:
    """Resolve the ``positions`` row matching a field zone, if any."""
    name = ZONE_POSITION_NAMES.get(zone)
    for position in positions:
        if position.get("name") == name:
            return position.get("id")
    return None
