# utils/production_tracker/charts.py
"""
Altair Chart Builders for Production Tracker

- Totals cards (st.metric)
- Monthly production vs per-hour target bars
- Agent ranking by production

Charts are built from TrackerMetrics output; empty input gives an empty
chart with a message.
"""

import logging
from typing import Dict

import altair as alt
import pandas as pd
import streamlit as st

from .constants import CHART_HEIGHT, COLORS
from .formatters import format_number

logger = logging.getLogger(__name__)


class TrackerCharts:
    """
    Chart builders for the tracker pages.

    All methods are static - can be called without instantiation.

    Usage:
        TrackerCharts.render_totals_cards(metrics.calculate_overview_metrics())
        chart = TrackerCharts.build_monthly_chart(monthly_df)
        st.altair_chart(chart, use_container_width=True)
    """

    @staticmethod
    def render_totals_cards(overview: Dict, show_counts: bool = False):
        """Per Hour Target / Production / Billable Hours cards."""
        columns = st.columns(4 if show_counts else 3)

        with columns[0]:
            st.metric("🎯 Total Per Hour Target", format_number(overview.get('tenure_target', 0)))
        with columns[1]:
            achievement = overview.get('achievement_percent')
            st.metric(
                "🏭 Total Production",
                format_number(overview.get('production', 0)),
                delta=f"{achievement:.1f}% of target" if achievement is not None else None,
                delta_color="normal" if (achievement or 0) >= 100 else "inverse",
            )
        with columns[2]:
            st.metric("⏱️ Total Billable Hours", format_number(overview.get('billable_hours', 0)))
        if show_counts:
            with columns[3]:
                st.metric(
                    "👥 Entries / Agents",
                    f"{overview.get('entry_count', 0):,} / {overview.get('agent_count', 0):,}"
                )

    @staticmethod
    def build_monthly_chart(
        monthly_df: pd.DataFrame,
        title: str = "📊 Monthly Production vs Per Hour Target"
    ) -> alt.Chart:
        """
        Grouped bars per month: per-hour target, production, billable hours.

        Args:
            monthly_df: TrackerMetrics.prepare_monthly_summary() output
        """
        if monthly_df is None or monthly_df.empty:
            return TrackerCharts._empty_chart("No data available")

        df = monthly_df.copy()
        df['period'] = df.apply(lambda r: f"{str(r['month_name'])[:3]} {int(r['year'])}", axis=1)
        order = df['period'].tolist()

        bar_data = df.melt(
            id_vars=['period'],
            value_vars=['tenure_target', 'production', 'billable_hours'],
            var_name='Metric',
            value_name='Value'
        )
        metric_map = {
            'tenure_target': 'Per Hour Target',
            'production': 'Production',
            'billable_hours': 'Billable Hours',
        }
        bar_data['Metric'] = bar_data['Metric'].map(metric_map)

        color_scale = alt.Scale(
            domain=list(metric_map.values()),
            range=[COLORS['tenure_target'], COLORS['production'], COLORS['billable_hours']]
        )

        return alt.Chart(bar_data).mark_bar().encode(
            x=alt.X('period:N', sort=order, title='Month'),
            y=alt.Y('Value:Q', title=''),
            color=alt.Color('Metric:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            xOffset='Metric:N',
            tooltip=[
                alt.Tooltip('period:N', title='Month'),
                alt.Tooltip('Metric:N', title='Metric'),
                alt.Tooltip('Value:Q', title='Value', format=',.2f'),
            ]
        ).properties(
            height=CHART_HEIGHT,
            title=title
        )

    @staticmethod
    def build_agent_ranking_chart(
        agent_df: pd.DataFrame,
        top_n: int = 15,
        title: str = "🏆 Production by Agent"
    ) -> alt.Chart:
        """
        Horizontal bars of production per agent, green at/above target.

        Args:
            agent_df: TrackerMetrics.aggregate_by_agent() output
            top_n: Number of agents shown
        """
        if agent_df is None or agent_df.empty:
            return TrackerCharts._empty_chart("No data available")

        df = agent_df.head(top_n).copy()
        df['user_name'] = df['user_name'].where(df['user_name'] != '', df['user_id'])
        df['on_target'] = df['achievement_percent'].map(lambda v: v is not None and v >= 100)

        bars = alt.Chart(df).mark_bar().encode(
            y=alt.Y('user_name:N', sort='-x', title=''),
            x=alt.X('production:Q', title='Production'),
            color=alt.condition(
                alt.datum.on_target,
                alt.value(COLORS['achievement_good']),
                alt.value(COLORS['achievement_bad'])
            ),
            tooltip=[
                alt.Tooltip('user_name:N', title='Agent'),
                alt.Tooltip('production:Q', title='Production', format=',.2f'),
                alt.Tooltip('tenure_target:Q', title='Per Hour Target', format=',.2f'),
                alt.Tooltip('entries:Q', title='Entries'),
            ]
        )

        return bars.properties(
            height=max(200, len(df) * 28),
            title=title
        )

    @staticmethod
    def _empty_chart(message: str = "No data available") -> alt.Chart:
        """Create an empty chart with a message."""
        return alt.Chart(pd.DataFrame({'note': [message]})).mark_text(
            text=message,
            fontSize=16,
            color=COLORS['text_light']
        ).properties(
            height=200
        )
