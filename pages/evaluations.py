"""pages.evaluations

Coach view of player evaluations: score a player against the evaluation
rubric, review and edit earlier evaluations and see which players of the
coach's teams have been evaluated recently.
"""

import logging
from datetime import date

import pandas as pd
import streamlit as st

from data.auth import get_user_id, require_role
from data.roles import COACH_ROLES
from data.security import validate_text
from data.shared_sidebar import render_team_selector
from utils import db
from utils.analytics import evaluation_radar_figure
from utils.errors import log_error, map_supabase_error
from utils.evaluations import EvaluationScoreError, category_totals, overall_percentage, validate_scores
from utils.formatting import format_date, format_player_name

logger = logging.getLogger(__name__)

require_role(*COACH_ROLES)

st.title("📝 Evaluations")

team = render_team_selector()
if not team:
    st.info("Select or create a team first.")
    st.stop()

try:
    structure = db.get_evaluation_structure()
    players = db.list_players(team["id"])
except Exception as e:
    log_error(e, "evaluation structure")
    st.error(f"⚠️ {map_supabase_error(e).message}")
    st.stop()

if not structure:
    st.warning("No evaluation categories are configured.")
    st.stop()


def score_inputs(prefix, existing=None):
    """One slider per criterion, grouped by category; returns the score list."""
    existing = {s["criterion_id"]: s for s in (existing or [])}
    scores = []
    for category in structure:
        st.markdown(f"**{category['name']}**")
        for criterion in category.get("criteria", []):
            current = existing.get(criterion["id"], {})
            value = st.slider(
                criterion["name"],
                min_value=0,
                max_value=int(criterion["max_score"]),
                value=int(current.get("score", 0)),
                help=criterion.get("description"),
                key=f"{prefix}_score_{criterion['id']}",
            )
            scores.append({"criterion_id": criterion["id"], "score": value, "notes": current.get("notes")})
    return scores


def render_evaluation(evaluation):
    totals = category_totals(structure, evaluation["scores"])
    coach = (evaluation.get("coach") or {}).get("display_name") or "Unknown coach"
    st.caption(f"{format_date(evaluation['evaluation_date'])} · by {coach} · "
               f"overall {overall_percentage(structure, evaluation['scores']):.0f}%")
    if evaluation.get("notes"):
        st.markdown(evaluation["notes"])
    col1, col2 = st.columns([3, 2])
    with col1:
        st.plotly_chart(evaluation_radar_figure(totals), width="stretch")
    with col2:
        st.dataframe(
            pd.DataFrame([{"Category": t["name"], "Score": f"{t['score']}/{t['max_score']}",
                           "%": round(t["percentage"], 1)} for t in totals]),
            hide_index=True,
            use_container_width=True,
        )


overview_tab, player_tab = st.tabs(["📋 Overview", "👤 Player"])

# === OVERVIEW ===
with overview_tab:
    try:
        evaluated = db.get_players_with_evaluations(get_user_id())
    except Exception as e:
        log_error(e, "players with evaluations")
        st.error(f"⚠️ {map_supabase_error(e).message}")
        evaluated = []
    if evaluated:
        st.dataframe(
            pd.DataFrame([{
                "Player": format_player_name(p),
                "Team": p["team_name"],
                "Evaluations": p["evaluation_count"],
                "Last evaluation": format_date(p["last_evaluation_date"]),
            } for p in evaluated]),
            hide_index=True,
            use_container_width=True,
        )
    else:
        st.caption("No evaluations in your teams yet.")

# === PLAYER ===
with player_tab:
    if not players:
        st.info("No players in this team.")
        st.stop()

    by_id = {p["id"]: p for p in players}
    player_id = st.selectbox(
        "Player",
        options=list(by_id),
        format_func=lambda pid: format_player_name(by_id[pid]),
        key="evaluation_player_select",
    )

    with st.expander("➕ New evaluation", expanded=False):
        with st.form(f"new_evaluation_{player_id}"):
            evaluation_date = st.date_input("Date", value=date.today())
            notes = st.text_area("Notes")
            scores = score_inputs(f"new_{player_id}")
            submitted = st.form_submit_button("Save evaluation", type="primary")
        if submitted:
            ok, message = validate_text(notes, label="Notes")
            if not ok:
                st.error(message)
            else:
                try:
                    validate_scores(structure, scores)
                    db.create_evaluation_with_scores(
                        player_id, evaluation_date.isoformat(), notes.strip() or None, get_user_id(), scores,
                    )
                except EvaluationScoreError as e:
                    st.error(str(e))
                except LookupError as e:
                    logger.error(f"Evaluation for player {player_id} not returned after insert")
                    st.error(f"❌ {e}. Check that you coach this player's team.")
                except Exception as e:
                    log_error(e, "create evaluation")
                    st.toast(f"❌ {map_supabase_error(e).message}")
                else:
                    st.toast("✅ Evaluation saved")
                    st.rerun()

    try:
        evaluations = db.get_player_evaluations(player_id)
    except Exception as e:
        log_error(e, "player evaluations")
        st.error(f"⚠️ {map_supabase_error(e).message}")
        st.stop()

    if not evaluations:
        st.caption("No evaluations for this player yet.")

    for evaluation in evaluations:
        with st.container(border=True):
            render_evaluation(evaluation)
            with st.expander("Edit"):
                with st.form(f"edit_evaluation_{evaluation['id']}"):
                    new_date = st.date_input("Date", value=date.fromisoformat(str(evaluation["evaluation_date"])[:10]))
                    new_notes = st.text_area("Notes", value=evaluation.get("notes") or "")
                    new_scores = score_inputs(f"edit_{evaluation['id']}", evaluation["scores"])
                    col1, col2 = st.columns(2)
                    save = col1.form_submit_button("Save changes", type="primary")
                    delete = col2.form_submit_button("Delete evaluation")
                if save:
                    try:
                        validate_scores(structure, new_scores)
                        db.update_evaluation(evaluation["id"], new_date.isoformat(), new_notes.strip() or None)
                        db.save_evaluation_scores(evaluation["id"], new_scores)
                    except EvaluationScoreError as e:
                        st.error(str(e))
                    except Exception as e:
                        log_error(e, "update evaluation")
                        st.toast(f"❌ {map_supabase_error(e).message}")
                    else:
                        st.toast("✅ Evaluation updated")
                        st.rerun()
                if delete:
                    try:
                        db.delete_evaluation(evaluation["id"])
                    except Exception as e:
                        log_error(e, "delete evaluation")
                        st.toast(f"❌ {map_supabase_error(e).message}")
                    else:
                        st.toast("🗑️ Evaluation deleted")
                        st.rerun()
