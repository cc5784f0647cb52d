"""Tests for quarter accounting, lineups and substitution checks."""

import pytest

from utils.periods import (
    FIELD_ZONES,
    MAX_FIELD_PLAYERS,
    PeriodFraction,
    SubstitutionError,
    build_lineup,
    can_assign_positions,
    can_place_on_field,
    check_period_totals,
    period_grid,
    periods_played,
    players_below_minimum,
    position_id_for_zone,
    validate_fraction,
    validate_period,
    validate_substitution,
    zone_for_new_player,
)


def _row(player_id, period, fraction="FULL"):
    return {"player_id": player_id, "period": period, "fraction": fraction}


class TestValidation:
    @pytest.mark.parametrize("period", [1, 2, 3, 4])
    def test_valid_periods(self, period):
        assert validate_period(period) == period

    @pytest.mark.parametrize("period", [0, 5, "1", None, True])
    def test_invalid_periods(self, period):
        with pytest.raises(ValueError):
            validate_period(period)

    def test_fraction(self):
        assert validate_fraction(PeriodFraction.HALF) == "HALF"
        assert validate_fraction("FULL") == "FULL"
        with pytest.raises(ValueError):
            validate_fraction("QUARTER")


class TestAccounting:
    def test_half_counts_as_half(self):
        rows = [_row(1, 1), _row(1, 2, "HALF"), _row(2, 1, "HALF")]
        assert periods_played(rows, 1) == 1.5
        assert periods_played(rows, 2) == 0.5
        assert periods_played(rows, 3) == 0

    def test_duplicate_period_row_replaces(self):
        rows = [_row(1, 1, "FULL"), _row(1, 1, "HALF")]
        assert periods_played(rows, 1) == 0.5

    def test_totals_never_exceed_four_quarters(self):
        rows = [_row(1, p) for p in (1, 2, 3, 4)]
        assert check_period_totals(rows) == {}

    def test_players_below_minimum(self):
        rows = [_row(1, 1), _row(1, 2), _row(2, 1, "HALF"), _row(2, 2)]
        assert players_below_minimum([1, 2, 3], rows, 2) == {2: 1.5, 3: 0}

    def test_positions_need_seven_call_ups(self):
        assert not can_assign_positions(6)
        assert can_assign_positions(7)


class TestLineup:
    def test_split_field_and_bench(self):
        periods = [_row(1, 1), _row(2, 1), _row(3, 2)]
        field, bench = build_lineup([1, 2, 3, 4], periods, [], 1)
        assert field == [1, 2]
        assert bench == [3, 4]

    def test_substitution_swaps_players(self):
        periods = [_row(1, 1, "HALF"), _row(2, 1, "HALF"), _row(3, 1)]
        subs = [{"period": 1, "player_out": 1, "player_in": 2}]
        field, bench = build_lineup([1, 2, 3], periods, subs, 1)
        assert field == [2, 3]
        assert bench == [1]

    def test_substitutions_of_other_quarters_are_ignored(self):
        periods = [_row(1, 2)]
        subs = [{"period": 1, "player_out": 1, "player_in": 2}]
        field, _ = build_lineup([1, 2], periods, subs, 2)
        assert field == [1]

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            build_lineup([1], [], [], 5)

    def test_field_is_capped(self):
        field = list(range(MAX_FIELD_PLAYERS))
        assert not can_place_on_field(field, 99)
        assert can_place_on_field(field, 0)
        assert can_place_on_field(field[:-1], 99)


class TestValidateSubstitution:
    def test_orders_out_and_in(self):
        assert validate_substitution([1, 2], [3], 3, 1) == (1, 3)
        assert validate_substitution([1, 2], [3], 2, 3) == (2, 3)

    def test_same_player(self):
        with pytest.raises(SubstitutionError, match="two different players"):
            validate_substitution([1], [2], 1, 1)

    def test_both_on_field(self):
        with pytest.raises(SubstitutionError, match="one from the bench"):
            validate_substitution([1, 2], [3], 1, 2)

    def test_incoming_not_on_bench(self):
        with pytest.raises(SubstitutionError, match="not on the bench"):
            validate_substitution([1], [2], 1, 5)


class TestGridAndZones:
    def test_period_grid(self):
        players = [{"id": 1, "full_name": "Ana", "jersey_number": 9}, {"id": 2, "full_name": "Bea"}]
        rows = period_grid(players, [_row(1, 1), _row(1, 3, "HALF")])
        assert rows[0]["q1"] == "FULL"
        assert rows[0]["q2"] is None
        assert rows[0]["q3"] == "HALF"
        assert rows[0]["total"] == 1.5
        assert rows[1]["total"] == 0

    def test_zone_for_new_player(self):
        assert zone_for_new_player([]) == "GOALKEEPER"
        assert zone_for_new_player(["GOALKEEPER", None]) == "LEFT_BACK"
        assert zone_for_new_player(FIELD_ZONES) is None

    def test_position_for_zone(self):
        positions = [{"id": 1, "name": "Goalkeeper"}, {"id": 2, "name": "Defender"}]
        assert position_id_for_zone("CENTRE_BACK", positions) == 2
        assert position_id_for_zone("CENTRE_FORWARD", positions) is None
