# utils/goal_pacing/charts.py
"""
Altair Chart Builders for Goal Pacing

- Category progress vs time elapsed (bars colored by tier + elapsed rule)
- Team progress by collaborator
"""

import logging
from typing import List

import altair as alt
import pandas as pd

from .constants import (
    COLORS, CHART_WIDTH, CHART_HEIGHT,
    TIER_AHEAD, TIER_NEAR, TIER_BEHIND,
    CATEGORY_NAMES,
)
from .metrics import MetricData

logger = logging.getLogger(__name__)

TIER_LABELS = {
    TIER_AHEAD: 'Adiantado',
    TIER_NEAR: 'No ritmo',
    TIER_BEHIND: 'Atrasado',
}


class GoalPacingCharts:
    """
    Chart builders for the goal pacing page.

    All methods are static.

    Usage:
        chart = GoalPacingCharts.build_progress_chart(metrics)
        st.altair_chart(chart, use_container_width=True)
    """

    @staticmethod
    def _tier_scale() -> alt.Scale:
        tiers = [TIER_AHEAD, TIER_NEAR, TIER_BEHIND]
        return alt.Scale(
            domain=[TIER_LABELS[t] for t in tiers],
            range=[COLORS[t] for t in tiers]
        )

    @staticmethod
    def build_progress_chart(metrics: List[MetricData], title: str = "") -> alt.Chart:
        """
        Horizontal bars of period progress per category with a rule at the
        share of working days already elapsed.
        """
        if not metrics:
            return GoalPacingCharts._empty_chart("Sem metas para o período")

        df = pd.DataFrame([
            {
                'Categoria': m.title,
                'Progresso': round(m.overall_progress_percent, 1),
                'Tempo decorrido': round(m.time_elapsed_percent, 1),
                'Status': TIER_LABELS.get(m.color_tier, m.color_tier),
                'Vendido': m.period_sales,
                'Meta': m.target,
            }
            for m in metrics
        ])

        bars = alt.Chart(df).mark_bar(cornerRadiusEnd=4).encode(
            y=alt.Y('Categoria:N', sort=None, title=None),
            x=alt.X('Progresso:Q', scale=alt.Scale(domain=[0, 100]), title='% da meta'),
            color=alt.Color('Status:N', scale=GoalPacingCharts._tier_scale(), legend=alt.Legend(orient='bottom')),
            tooltip=[
                alt.Tooltip('Categoria:N'),
                alt.Tooltip('Progresso:Q', format='.1f', title='Progresso (%)'),
                alt.Tooltip('Tempo decorrido:Q', format='.1f', title='Tempo decorrido (%)'),
                alt.Tooltip('Vendido:Q', format=',.2f'),
                alt.Tooltip('Meta:Q', format=',.2f'),
            ]
        )

        elapsed = alt.Chart(df).mark_tick(
            color=COLORS['time_elapsed'],
            thickness=3,
            size=28
        ).encode(
            y=alt.Y('Categoria:N', sort=None),
            x='Tempo decorrido:Q',
        )

        return (bars + elapsed).properties(
            width=CHART_WIDTH,
            height=max(120, 48 * len(df)),
            title=title
        )

    @staticmethod
    def build_team_progress_chart(team_df: pd.DataFrame, category: str) -> alt.Chart:
        """Progress per collaborator for one category, colored by tier."""
        if team_df.empty:
            return GoalPacingCharts._empty_chart("Nenhum colaborador com meta")

        df = team_df[team_df['category'] == category].copy()
        if df.empty:
            return GoalPacingCharts._empty_chart(f"Nenhuma meta de {CATEGORY_NAMES.get(category, category)}")

        df['Status'] = df['color_tier'].map(TIER_LABELS)

        bars = alt.Chart(df).mark_bar().encode(
            x=alt.X('name:N', sort='-y', title=None),
            y=alt.Y('progress_percent:Q', scale=alt.Scale(domain=[0, 100]), title='% da meta'),
            color=alt.Color('Status:N', scale=GoalPacingCharts._tier_scale()),
            tooltip=[
                alt.Tooltip('name:N', title='Colaborador'),
                alt.Tooltip('progress_percent:Q', format='.1f', title='Progresso (%)'),
                alt.Tooltip('time_elapsed_percent:Q', format='.1f', title='Tempo decorrido (%)'),
                alt.Tooltip('period_sales:Q', format=',.2f', title='Vendido'),
                alt.Tooltip('target:Q', format=',.2f', title='Meta'),
            ]
        )

        return bars.properties(
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
            title=CATEGORY_NAMES.get(category, category)
        )

    @staticmethod
    def _empty_chart(message: str = "Sem dados") -> alt.Chart:
        """Create an empty chart with a message."""
        return alt.Chart(pd.DataFrame({'note': [message]})).mark_text(
            text=message,
            fontSize=16,
            color=COLORS['text_light']
        ).properties(
            width=CHART_WIDTH,
            height=200
        )
