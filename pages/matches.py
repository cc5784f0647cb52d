"""pages.matches

Match management for coaches: create and edit matches, pick the call-up,
set the lineup for each quarter, record substitutions, quarter results and
goals, and check that every called-up player reached the minimum number of
quarters. Substitutions and the minimum-quarter check run as database
procedures; this page only shows what they return.
"""

import logging
from datetime import datetime, time

import pandas as pd
import streamlit as st

from data.auth import require_role
from data.roles import COACH_ROLES
from data.security import sanitize_html, validate_text
from data.shared_sidebar import render_team_selector
from data.state_manager import (
    clear_selected_match,
    get_selected_match_id,
    get_selected_period,
    set_selected_match_id,
    set_selected_period,
)
from utils import db
from utils.config import get_min_periods_per_player
from utils.errors import log_error, map_supabase_error
from utils.formatting import (
    format_date,
    format_player_name,
    format_quarters,
    format_result_badge,
    format_score,
    period_grid_dataframe,
)
from utils.periods import (
    MIN_CALL_UPS,
    PERIODS,
    PeriodFraction,
    SubstitutionError,
    build_lineup,
    can_assign_positions,
    can_place_on_field,
    period_grid,
    players_below_minimum,
    position_id_for_zone,
    validate_substitution,
    zone_for_new_player,
)
from utils.statistics import build_match_results

logger = logging.getLogger(__name__)

require_role(*COACH_ROLES)

st.title("⚽ Matches")

team = render_team_selector()
if not team:
    st.info("Select or create a team first.")
    st.stop()


def _fail(e, context):
    log_error(e, context)
    st.toast(f"❌ {map_supabase_error(e).message}")


def _render_procedure_result(result):
    """Show whatever a database procedure returned, without interpreting it further."""
    if result is True or result == []:
        st.success("✅ Passed")
    elif result is False:
        st.error("❌ Not passed")
    elif isinstance(result, list) and all(isinstance(r, dict) for r in result):
        st.dataframe(pd.DataFrame(result), hide_index=True, use_container_width=True)
    elif result is None:
        st.caption("No result returned.")
    else:
        st.json(result)


def _match_form(key, match=None):
    """Fields shared by the create and edit forms; returns (submitted, values)."""
    match = match or {}
    kickoff = datetime.fromisoformat(match["match_date"].replace("Z", "+00:00")) if match.get("match_date") else None
    with st.form(key, clear_on_submit=match == {}):
        opponent = st.text_input("Opponent", value=match.get("opponent") or "")
        col1, col2 = st.columns(2)
        day = col1.date_input("Date", value=kickoff.date() if kickoff else datetime.now().date())
        kick = col2.time_input("Kick-off", value=kickoff.time() if kickoff else time(10, 0))
        location = st.text_input("Location", value=match.get("location") or "")
        notes = st.text_area("Notes", value=match.get("notes") or "")
        submitted = st.form_submit_button("Save match", type="primary")
    values = {
        "opponent": opponent.strip(),
        "match_date": datetime.combine(day, kick).isoformat(),
        "location": location.strip() or None,
        "notes": notes.strip() or None,
    }
    return submitted, values


def _validate_match(values):
    if not values["opponent"]:
        return "Opponent is required."
    ok, message = validate_text(values["notes"] or "", label="Notes")
    return None if ok else message


# =============================================================================
# MATCH LIST
# =============================================================================

try:
    matches = db.list_matches(team["id"])
    quarter_results = db.get_quarter_results_for_matches([m["id"] for m in matches])
except Exception as e:
    log_error(e, "matches list")
    st.error(f"⚠️ {map_supabase_error(e).message}")
    st.stop()

results = {
    r["match_id"]: r
    for r in build_match_results([{**m, "match_quarter_results": quarter_results.get(m["id"], [])} for m in matches])
}

list_col, create_col = st.columns([3, 2])

with list_col:
    st.subheader("Matches")
    if not matches:
        st.info("No matches yet.")
    for m in matches:
        r = results[m["id"]]
        score = format_score(r["team_goals"], r["opponent_goals"]) if r["result"] else "–"
        row = st.columns([1, 4, 2, 2])
        row[0].markdown(format_result_badge(r["result"]), unsafe_allow_html=True)
        row[1].markdown(f"**{sanitize_html(m['opponent'])}**  \n{format_date(m['match_date'], with_time=True)}")
        row[2].markdown(score)
        if row[3].button("Open", key=f"open_match_{m['id']}"):
            set_selected_match_id(m["id"])
            st.rerun()

with create_col:
    st.subheader("New match")
    submitted, values = _match_form("create_match_form")
    if submitted:
        problem = _validate_match(values)
        if problem:
            st.error(problem)
        else:
            try:
                created = db.create_match({**values, "team_id": team["id"]})
            except Exception as e:
                _fail(e, "create match")
            else:
                st.toast("✅ Match created")
                if created:
                    set_selected_match_id(created["id"])
                st.rerun()

match = next((m for m in matches if m["id"] == get_selected_match_id()), None)
if not match:
    st.stop()

# =============================================================================
# MATCH DETAIL
# =============================================================================

st.divider()
header, close = st.columns([5, 1])
header.subheader(f"vs {match['opponent']} · {format_date(match['match_date'], with_time=True)}")
if close.button("Close", key="close_match"):
    clear_selected_match()
    st.rerun()

try:
    players = db.list_players(team["id"])
    positions = db.list_positions()
    call_ups = db.list_match_call_ups(match["id"])
    periods = db.list_match_periods(match["id"])
    substitutions = db.list_match_substitutions(match["id"])
    goals = db.list_match_goals(match["id"])
except Exception as e:
    log_error(e, "match detail")
    st.error(f"⚠️ {map_supabase_error(e).message}")
    st.stop()

players_by_id = {p["id"]: p for p in players}
called_up_ids = [p["id"] for p in players if p["id"] in {c["player_id"] for c in call_ups}]
min_periods = get_min_periods_per_player()

details_tab, call_up_tab, lineup_tab, results_tab, summary_tab = st.tabs([
    "📋 Details", "📣 Call-up", "🧩 Lineup", "🥅 Results", "📊 Quarters",
])

# === DETAILS ===
with details_tab:
    submitted, values = _match_form("edit_match_form", match)
    if submitted:
        problem = _validate_match(values)
        if problem:
            st.error(problem)
        else:
            try:
                db.update_match(match["id"], values)
            except Exception as e:
                _fail(e, "update match")
            else:
                st.toast("✅ Match updated")
                st.rerun()

    with st.expander("Delete match"):
        st.warning("This removes the match with its lineup, results and goals.")
        if st.button("Delete match", key="delete_match", type="primary"):
            try:
                db.delete_match(match["id"])
            except Exception as e:
                _fail(e, "delete match")
            else:
                clear_selected_match()
                st.toast("🗑️ Match deleted")
                st.rerun()

# === CALL-UP ===
with call_up_tab:
    st.caption(
        f"Every called-up player must play at least {min_periods} quarters. "
        f"Positions can be assigned once {MIN_CALL_UPS} players are called up."
    )
    selection = st.multiselect(
        "Called-up players",
        options=[p["id"] for p in players],
        default=called_up_ids,
        format_func=lambda pid: format_player_name(players_by_id[pid]),
        key=f"call_up_select_{match['id']}",
    )
    st.caption(f"{len(selection)} selected")
    if st.button("Save call-up", key="save_call_up", type="primary"):
        try:
            db.set_match_call_ups(match["id"], selection)
        except Exception as e:
            _fail(e, "save call-up")
        else:
            st.toast("✅ Call-up saved")
            st.rerun()

# === LINEUP ===
with lineup_tab:
    if not can_assign_positions(len(called_up_ids)):
        st.info(f"Call up at least {MIN_CALL_UPS} players to set the lineup ({len(called_up_ids)} so far).")
    else:
        period = st.radio(
            "Quarter",
            options=list(PERIODS),
            index=list(PERIODS).index(get_selected_period()),
            format_func=lambda p: f"Q{p}",
            horizontal=True,
            key="lineup_period",
        )
        set_selected_period(period)

        quarter_subs = [s for s in substitutions if s["period"] == period]
        field, bench = build_lineup(called_up_ids, periods, quarter_subs, period)
        zones = {r["player_id"]: r.get("field_zone") for r in periods if r["period"] == period}

        field_col, bench_col = st.columns(2)
        with field_col:
            st.markdown(f"#### On the field ({len(field)})")
            for pid in field:
                row = st.columns([4, 1])
                zone = zones.get(pid)
                label = format_player_name(players_by_id.get(pid))
                row[0].markdown(f"{label} · {zone.replace('_', ' ').title()}" if zone else label)
                if row[1].button("⬇️", key=f"bench_{period}_{pid}", help="Move to bench"):
                    try:
                        db.clear_match_period(match["id"], pid, period)
                    except Exception as e:
                        _fail(e, "move to bench")
                    else:
                        st.rerun()

        with bench_col:
            st.markdown(f"#### Bench ({len(bench)})")
            for pid in bench:
                row = st.columns([4, 1])
                row[0].markdown(format_player_name(players_by_id.get(pid)))
                if row[1].button("⬆️", key=f"field_{period}_{pid}", help="Put on the field"):
                    if not can_place_on_field(field, pid):
                        st.toast("❌ The field is full. Bench a player or make a substitution.")
                    else:
                        zone = zone_for_new_player(zones.get(f) for f in field)
                        try:
                            db.upsert_match_period(
                                match["id"], pid, period, PeriodFraction.FULL,
                                position_id=position_id_for_zone(zone, positions) if zone else None,
                                field_zone=zone,
                            )
                        except Exception as e:
                            _fail(e, "put on field")
                        else:
                            st.rerun()

        st.markdown("#### Substitutions")
        with st.form(f"substitution_form_{period}"):
            col1, col2 = st.columns(2)
            player_a = col1.selectbox(
                "Player leaving", options=field,
                format_func=lambda pid: format_player_name(players_by_id.get(pid)),
            )
            player_b = col2.selectbox(
                "Player coming in", options=bench,
                format_func=lambda pid: format_player_name(players_by_id.get(pid)),
            )
            submitted = st.form_submit_button("Make substitution")
        if submitted:
            try:
                player_out, player_in = validate_substitution(field, bench, player_a, player_b)
                result = db.apply_match_substitution(match["id"], period, player_out, player_in)
            except SubstitutionError as e:
                st.error(str(e))
            except Exception as e:
                _fail(e, "apply substitution")
            else:
                st.toast("✅ Substitution recorded")
                st.session_state["last_substitution_result"] = result
                st.rerun()

        if "last_substitution_result" in st.session_state:
            _render_procedure_result(st.session_state.pop("last_substitution_result"))

        for sub in quarter_subs:
            row = st.columns([4, 1])
            row[0].markdown(
                f"🔄 {format_player_name(players_by_id.get(sub['player_out']))} → "
                f"{format_player_name(players_by_id.get(sub['player_in']))}"
            )
            if row[1].button("Undo", key=f"undo_sub_{sub['id']}"):
                try:
                    db.remove_match_substitution(match["id"], period, sub["player_out"], sub["player_in"])
                except Exception as e:
                    _fail(e, "remove substitution")
                else:
                    st.toast("↩️ Substitution removed")
                    st.rerun()

# === RESULTS & GOALS ===
with results_tab:
    existing = {q["quarter"]: q for q in quarter_results.get(match["id"], [])}
    with st.form("quarter_results_form"):
        cols = st.columns(len(PERIODS))
        entered = {}
        for col, q in zip(cols, PERIODS):
            col.markdown(f"**Q{q}**")
            ours = col.number_input("Us", min_value=0, step=1, value=existing.get(q, {}).get("team_goals", 0), key=f"qr_us_{q}")
            theirs = col.number_input("Them", min_value=0, step=1, value=existing.get(q, {}).get("opponent_goals", 0), key=f"qr_them_{q}")
            entered[q] = (int(ours), int(theirs))
        submitted = st.form_submit_button("Save results", type="primary")
    if submitted:
        try:
            for q, (ours, theirs) in entered.items():
                db.upsert_match_quarter_result(match["id"], q, ours, theirs)
        except Exception as e:
            _fail(e, "save quarter results")
        else:
            st.toast("✅ Results saved")
            st.rerun()

    st.markdown("#### Goals")
    for goal in goals:
        row = st.columns([4, 1])
        assist = goal.get("assister_id")
        row[0].markdown(
            f"Q{goal['quarter']} · ⚽ {format_player_name(players_by_id.get(goal['scorer_id']))}"
            + (f" (assist {format_player_name(players_by_id.get(assist))})" if assist else "")
        )
        if row[1].button("🗑️", key=f"delete_goal_{goal['id']}"):
            try:
                db.delete_match_goal(goal["id"])
            except Exception as e:
                _fail(e, "delete goal")
            else:
                st.rerun()

    if called_up_ids:
        with st.form("add_goal_form", clear_on_submit=True):
            col1, col2, col3 = st.columns(3)
            quarter = col1.selectbox("Quarter", options=list(PERIODS), format_func=lambda p: f"Q{p}")
            scorer = col2.selectbox(
                "Scorer", options=called_up_ids,
                format_func=lambda pid: format_player_name(players_by_id.get(pid)),
            )
            assister = col3.selectbox(
                "Assist", options=[None] + called_up_ids,
                format_func=lambda pid: "No assist" if pid is None else format_player_name(players_by_id.get(pid)),
            )
            submitted = st.form_submit_button("Add goal")
        if submitted:
            try:
                db.add_match_goal(match["id"], quarter, scorer, assister)
            except ValueError as e:
                st.error(str(e))
            except Exception as e:
                _fail(e, "add goal")
            else:
                st.rerun()
    else:
        st.caption("Call up players to record goals.")

# === QUARTERS SUMMARY ===
with summary_tab:
    called_up_players = [players_by_id[pid] for pid in called_up_ids]
    if not called_up_players:
        st.info("No players called up.")
    else:
        st.dataframe(period_grid_dataframe(period_grid(called_up_players, periods)),
                     hide_index=True, use_container_width=True)

        below = players_below_minimum(called_up_ids, periods, min_periods)
        if below:
            st.warning("Below the minimum so far: " + ", ".join(
                f"{format_player_name(players_by_id.get(pid))} ({format_quarters(total)})"
                for pid, total in below.items()
            ))

        if st.button(f"Check minimum of {min_periods} quarters", key="validate_minimum"):
            try:
                result = db.validate_match_minimum_periods(match["id"], min_periods)
            except Exception as e:
                _fail(e, "validate minimum periods")
            else:
                _render_procedure_result(result)
