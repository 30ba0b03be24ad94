"""
Metrics Display Functions

UI components for the live process panel, the daily process-time cards and
the hourly activity chart.
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import logging

from analysis.daily_metrics import DailyMetrics, LiveProcessView
from core.calculations.throughput import compare_to_target
from utils.formatting import format_duration_hm, format_mass, format_rate

logger = logging.getLogger(__name__)


def display_live_panel(view: LiveProcessView, target_rate_ton_h: float):
    """
    Display the live cycle panel.

    Shows:
    - Status: cooking, stopped or idle
    - Net active time (HH:MM:SS), ticking while a cycle is open
    - Flow rate against the target
    - Remaining raw material (t or kg, negative = over-consumption)

    Args:
        view: LiveProcessView from build_live_view
        target_rate_ton_h: Target flow rate
    """
    if view.is_stopped:
        st.error(f"⛔ Line stopped: {getattr(view.active_downtime, 'reason', '')}")
    elif view.is_active:
        st.success(f"🔥 Cooking since {view.open_cycle.start_time}")
    else:
        st.info("⏸️ No open cooking cycle")

    col1, col2, col3 = st.columns(3)

    with col1:
        st.metric("Net Active Time", view.elapsed_string)

    with col2:
        difference, is_below = compare_to_target(view.rate_ton, target_rate_ton_h)
        if view.metrics.net_active_minutes > 0:
            st.metric(
                "Flow Rate ⚠️" if is_below else "Flow Rate",
                format_rate(view.rate_ton),
                delta=f"{difference:+.2f} vs {target_rate_ton_h} t/h",
            )
        else:
            st.metric("Flow Rate", "N/A", help="No net process time yet")

    with col3:
        if view.remaining_unit == "t":
            value = f"{view.remaining_val:,.2f} t"
        else:
            value = f"{view.remaining_val:,.0f} kg"
        st.metric("Remaining Raw Material", value)
        if view.remaining_val < 0:
            st.caption("⚠️ More consumed than received today")


def display_process_time_cards(metrics: DailyMetrics):
    """
    Display the day's process-time breakdown in four columns.

    Args:
        metrics: DailyMetrics for the selected day
    """
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("Raw Material Input", format_mass(metrics.total_consumption))
        st.caption("Consumed by production entries")

    with col2:
        st.metric("Gross Cooking Time", format_duration_hm(metrics.gross_active_minutes))

    with col3:
        st.metric("Stops", format_duration_hm(metrics.downtime_minutes))
        if metrics.manual_downtime_minutes > 0:
            st.caption(
                f"+ {format_duration_hm(metrics.manual_downtime_minutes)} entered manually (not deducted)"
            )

    with col4:
        st.metric("Net Process Time", format_duration_hm(metrics.net_active_minutes))


def display_hourly_breakdown(hourly_df: pd.DataFrame, target_rate_ton_h: float):
    """
    Stacked bar chart of active and stopped minutes per hour.

    Args:
        hourly_df: DataFrame from calculate_hourly_active_breakdown
        target_rate_ton_h: Rate used for the estimated volume hover
    """
    st.subheader("📊 Hourly Process Activity")

    if hourly_df.empty or (hourly_df['active_minutes'].sum() + hourly_df['downtime_minutes'].sum()) == 0:
        st.info("No cooking activity recorded for this day")
        return

    fig = go.Figure()

    fig.add_trace(go.Bar(
        x=hourly_df['hour_start'],
        y=hourly_df['active_minutes'],
        name='Active',
        marker_color='#28a745',
        customdata=hourly_df['estimated_volume_ton'],
        hovertemplate='%{x|%H:%M}<br>%{y:.0f} min active<br>~%{customdata:.2f} t<extra></extra>'
    ))

    fig.add_trace(go.Bar(
        x=hourly_df['hour_start'],
        y=hourly_df['downtime_minutes'],
        name='Stopped',
        marker_color='#dc3545',
        hovertemplate='%{x|%H:%M}<br>%{y:.0f} min stopped<extra></extra>'
    ))

    fig.update_layout(
        barmode='stack',
        xaxis_title='Hour',
        yaxis_title='Minutes',
        yaxis=dict(range=[0, 60]),
        height=350,
        hovermode='x unified',
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        xaxis=dict(type='date', tickformat='%H:%M', dtick=3600000)
    )

    st.plotly_chart(fig, use_container_width=True)
    st.caption(
        f"Estimated volume uses the nominal rate of {target_rate_ton_h} t/h "
        f"(total ≈ {hourly_df['estimated_volume_ton'].sum():.1f} t)"
    )
