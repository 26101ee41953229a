# utils/goal_pacing/fragments.py
"""
Streamlit Fragments for Goal Pacing

Card, chart and table sections of the Daily Goals page.
The team section is an @st.fragment so switching its category filter
only reruns that section.

Values arrive as numbers; every R$ / % string is built here.
"""

from typing import List, Optional

import pandas as pd
import streamlit as st

from .charts import GoalPacingCharts, TIER_LABELS
from .constants import (
    CATEGORY_ICONS, CATEGORY_NAMES,
    STATUS_LABELS, STATUS_PENDING,
    COLORS,
)
from .metrics import MetricData, summarize_metrics


# =============================================================================
# FORMATTING
# =============================================================================

def format_currency(value: Optional[float]) -> str:
    """Brazilian currency: 1234.5 -> 'R$ 1.234,50'."""
    value = float(value or 0)
    sign = '-' if value < 0 else ''
    formatted = f"{abs(value):,.2f}".replace(',', '_').replace('.', ',').replace('_', '.')
    return f"{sign}R$ {formatted}"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    return f"{float(value or 0):.{decimals}f}%".replace('.', ',')


# =============================================================================
# METRIC CARDS
# =============================================================================

def render_metric_card(metric: MetricData):
    """One category card: daily quota block, period progress, status."""
    icon = CATEGORY_ICONS.get(metric.category, '📊')
    status_icon, status_label = STATUS_LABELS.get(metric.status, ('', metric.status))
    tier_color = COLORS.get(metric.color_tier, COLORS['text_dark'])

    with st.container(border=True):
        st.markdown(f"**{icon} {metric.title}**")

        col1, col2 = st.columns(2)
        with col1:
            st.metric(
                label="Meta de hoje",
                value=format_currency(metric.daily_target),
                help="(Meta - vendido até ontem) / dias úteis restantes"
            )
        with col2:
            st.metric(
                label="Vendido hoje",
                value=format_currency(metric.today_sales),
                delta=format_percent(metric.daily_progress_percent) if metric.daily_target > 0 else None,
                delta_color="off"
            )

        if metric.missing_today > 0:
            st.caption(f"Falta hoje: **{format_currency(metric.missing_today)}**")

        st.progress(
            min(1.0, metric.overall_progress_percent / 100),
            text=(
                f"{format_percent(metric.overall_progress_percent)} da meta "
                f"({format_currency(metric.period_sales)} de {format_currency(metric.target)})"
            )
        )
        st.markdown(
            f"<span style='color:{tier_color}'>● {TIER_LABELS.get(metric.color_tier, '')}</span>"
            f" · tempo decorrido {format_percent(metric.time_elapsed_percent)}"
            f" · {metric.remaining_days} dias restantes",
            unsafe_allow_html=True
        )

        if metric.status != STATUS_PENDING:
            st.success(f"{status_icon} {status_label}")
        else:
            st.caption(f"{status_icon} {status_label}")


def render_metric_cards(metrics: List[MetricData], n_columns: int = 3):
    """Grid of category cards."""
    for start in range(0, len(metrics), n_columns):
        columns = st.columns(n_columns)
        for col, metric in zip(columns, metrics[start:start + n_columns]):
            with col:
                render_metric_card(metric)


# =============================================================================
# SECTIONS
# =============================================================================

def store_goals_section(metrics: List[MetricData], store_name: str, store_found: bool = True):
    """Store category cards; suppressed only when the store could not be identified."""
    st.subheader(f"🏪 Metas da loja · {store_name}")

    if not store_found:
        st.error("Loja não identificada. Verifique o número da loja no cadastro.")
        return

    if not metrics:
        st.info("Nenhuma meta cadastrada para esta loja no período.")
        return

    summary = summarize_metrics(metrics)
    st.caption(
        f"{summary['total']} categorias · "
        f"{summary['atingido'] + summary['acima']} com a meta de hoje batida"
    )

    render_metric_cards(metrics)

    with st.expander("📊 Progresso x tempo decorrido"):
        st.altair_chart(GoalPacingCharts.build_progress_chart(metrics), use_container_width=True)


def individual_goals_section(metrics: List[MetricData], collaborator_name: str):
    st.subheader(f"👤 Minhas metas · {collaborator_name}")

    if not metrics:
        st.info("Nenhuma meta individual cadastrada no período.")
        return

    render_metric_cards(metrics)


@st.fragment
def team_progress_fragment(team_df: pd.DataFrame, fragment_key: str = "team"):
    """Team progress table with a category filter (manager view)."""
    st.subheader("👥 Progresso da equipe")

    if team_df is None or team_df.empty:
        st.info("Nenhum colaborador com metas neste período.")
        return

    categories = list(dict.fromkeys(team_df['category']))
    category = st.selectbox(
        "Categoria",
        options=categories,
        format_func=lambda c: CATEGORY_NAMES.get(c, c),
        key=f"{fragment_key}_category"
    )

    st.altair_chart(
        GoalPacingCharts.build_team_progress_chart(team_df, category),
        use_container_width=True
    )

    view = team_df[team_df['category'] == category].copy()
    view['Status'] = view['color_tier'].map(TIER_LABELS)
    view = view.sort_values('progress_percent', ascending=False)

    st.dataframe(
        view[['name', 'role', 'target', 'period_sales', 'progress_percent', 'time_elapsed_percent', 'Status']],
        column_config={
            'name': st.column_config.TextColumn("Colaborador"),
            'role': st.column_config.TextColumn("Função"),
            'target': st.column_config.NumberColumn("Meta", format="R$ %.2f"),
            'period_sales': st.column_config.NumberColumn("Vendido", format="R$ %.2f"),
            'progress_percent': st.column_config.ProgressColumn(
                "Progresso", min_value=0, max_value=100, format="%.1f%%"
            ),
            'time_elapsed_percent': st.column_config.NumberColumn("Tempo decorrido", format="%.1f%%"),
        },
        hide_index=True,
        use_container_width=True
    )
