"""
================================================================================
ANALYTICS AND VISUALIZATION UTILITIES
================================================================================

Purpose: Plotly charts for the statistics, dashboard and evaluation pages.
The ``*_figure`` builders take already-aggregated rows from
``utils.statistics`` / ``utils.evaluations`` and return a go.Figure, so the
same chart configuration is reused across pages. ``render_statistics_section``
fetches the data for one team and lays the charts out.
================================================================================
"""

import logging

import plotly.graph_objects as go
import streamlit as st

from utils import db
from utils.errors import log_error, map_supabase_error
from utils.formatting import attendance_dataframe, match_results_dataframe
from utils.statistics import player_attendance_summary

logger = logging.getLogger(__name__)

COLORS = {
    'win': '#2A9D8F',
    'draw': '#E9C46A',
    'loss': '#E76F51',
    'scored': '#2E86AB',
    'conceded': '#F77F00',
}


def _style(fig, title, height=320):
    fig.update_layout(
        title=dict(text=title, x=0.5, xanchor='center', font=dict(size=18, family='Arial', color='#000000')),
        height=height,
        margin=dict(l=20, r=20, t=50, b=20),
        paper_bgcolor='#FFFFFF',
        plot_bgcolor='rgba(0,0,0,0)',
        font=dict(family='Inter, system-ui, sans-serif', size=12),
    )
    return fig


# =============================================================================
# FIGURE BUILDERS
# =============================================================================

def results_figure(overall):
    """Donut chart of wins, draws and losses."""
    labels = ['Wins', 'Draws', 'Losses']
    values = [overall['wins'], overall['draws'], overall['losses']]
    fig = go.Figure(data=[go.Pie(
        labels=labels,
        values=values,
        hole=0.5,
        marker=dict(colors=[COLORS['win'], COLORS['draw'], COLORS['loss']]),
        sort=False,
    )])
    return _style(fig, "Results")


def quarter_goals_figure(quarters):
    """Goals scored and conceded per quarter, grouped bars."""
    x = [f"Q{q['quarter']}" for q in quarters]
    fig = go.Figure(data=[
        go.Bar(name='Scored', x=x, y=[q['total_goals_scored'] for q in quarters], marker_color=COLORS['scored']),
        go.Bar(name='Conceded', x=x, y=[q['total_goals_conceded'] for q in quarters], marker_color=COLORS['conceded']),
    ])
    fig.update_layout(barmode='group', xaxis_title="Quarter", yaxis_title="Goals")
    return _style(fig, "Goals per Quarter")


def formation_figure(formations):
    fig = go.Figure(data=[go.Bar(
        x=[f['formation_key'] for f in formations],
        y=[f['win_percentage'] for f in formations],
        text=[f"{f['matches_played']} matches" for f in formations],
        marker_color=COLORS['win'],
    )])
    fig.update_layout(xaxis_title="Starting lineup", yaxis_title="Win %", yaxis=dict(range=[0, 100]))
    return _style(fig, "Win Rate by Starting Lineup")


def scorers_figure(goal_stats, limit=10):
    top = goal_stats[:limit]
    names = [s['full_name'] or 'Unknown' for s in top]
    fig = go.Figure(data=[
        go.Bar(name='Goals', x=names, y=[s['total_goals'] for s in top], marker_color=COLORS['scored']),
        go.Bar(name='Assists', x=names, y=[s['total_assists'] for s in top], marker_color=COLORS['draw']),
    ])
    fig.update_layout(barmode='stack', yaxis_title="Count")
    return _style(fig, "Top Scorers")


def attendance_figure(summary):
    fig = go.Figure(data=[go.Bar(
        x=[s['full_name'] or 'Unknown' for s in summary],
        y=[s['attendance_pct'] for s in summary],
        marker_color=COLORS['scored'],
    )])
    fig.update_layout(yaxis_title="Attendance %", yaxis=dict(range=[0, 100]))
    return _style(fig, "Training Attendance")


def evaluation_radar_figure(category_totals):
    """Radar chart of the category percentages of one evaluation."""
    names = [c['name'] for c in category_totals]
    values = [round(c['percentage'], 1) for c in category_totals]
    # close the polygon
    fig = go.Figure(data=[go.Scatterpolar(
        r=values + values[:1],
        theta=names + names[:1],
        fill='toself',
        line_color=COLORS['scored'],
    )])
    fig.update_layout(polar=dict(radialaxis=dict(visible=True, range=[0, 100])), showlegend=False)
    return _style(fig, "Evaluation by Category", height=380)


# =============================================================================
# PAGE SECTIONS
# =============================================================================

def render_overview_metrics(overall):
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Matches", overall['total_matches'])
    col2.metric("Win rate", f"{overall['win_percentage']:.0f}%")
    col3.metric("Goal difference", f"{overall['goal_difference']:+d}")
    col4.metric("Training attendance", f"{overall.get('avg_training_attendance', 0):.0f}%")


def render_statistics_section(team_id):
    """Fetch and render all team statistics charts."""
    try:
        overall = db.get_team_overall_stats(team_id)
        match_results = db.get_match_results(team_id)
        quarters = db.get_quarter_performance(team_id)
        formations = db.get_formation_statistics(team_id)
        goal_stats = db.get_player_goal_stats(team_id)
        attendance_rows = db.get_team_attendance_stats(team_id)
    except Exception as e:
        log_error(e, "render_statistics_section")
        st.error(f"⚠️ {map_supabase_error(e).message}")
        return

    render_overview_metrics(overall)
    st.divider()

    if overall['total_matches'] == 0:
        st.info("No match results recorded yet.")
    else:
        col1, col2 = st.columns(2)
        with col1:
            st.plotly_chart(results_figure(overall), width="stretch")
        with col2:
            st.plotly_chart(quarter_goals_figure(quarters), width="stretch")

        col1, col2 = st.columns(2)
        with col1:
            st.plotly_chart(formation_figure(formations), width="stretch")
        with col2:
            if goal_stats:
                st.plotly_chart(scorers_figure(goal_stats), width="stretch")
            else:
                st.caption("No goals recorded yet.")

        st.subheader("Match results")
        st.dataframe(match_results_dataframe(match_results), hide_index=True, use_container_width=True)

    summary = player_attendance_summary(attendance_rows)
    if summary:
        st.subheader("Training attendance")
        st.plotly_chart(attendance_figure(summary), width="stretch")
        st.dataframe(attendance_dataframe(summary), hide_index=True, use_container_width=True)
