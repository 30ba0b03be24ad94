"""
Rendering Plant Process Dashboard - Main Application

Live process-time and throughput accounting for the digester line:
- Net active time = cooking cycles minus line stops
- Flow rate (t/h) = raw material consumed / net active hours
- Remaining raw material = received minus consumed
"""

import streamlit as st
import logging
from datetime import date, timedelta
from functools import partial

from config import Config
from utils.config import load_config, validate_config
from analysis.daily_metrics import build_live_view
from core.calculations.throughput import calculate_hourly_active_breakdown
from core.live.refresh import cadence_for
from core.process.clock import plant_now
from core.process.reconciler import find_open_cycle
from core.process.snapshot import SnapshotStore
from core.security.edit_lock import SecurityGate
from db.fetchers import fetch_records_snapshot
from ui.log_display import LogCollector, render_compact_log_area
from ui.metrics_display import display_hourly_breakdown, display_live_panel, display_process_time_cards
from ui.process_controls import render_cycle_controls, render_downtime_controls, render_record_tables

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load configuration
load_config()

# Streamlit page config
st.set_page_config(
    page_title="Rendering Plant Process Dashboard",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Validate configuration
config_errors = validate_config()
if config_errors:
    st.error("❌ Configuration errors detected:")
    for error in config_errors:
        st.error(error)
    st.stop()


def _get_store() -> SnapshotStore:
    """One snapshot store per browser session"""
    if "records_store" not in st.session_state:
        # Backoff only on the first load; timed reloads try once per tick
        st.session_state["records_store"] = SnapshotStore(
            partial(fetch_records_snapshot, Config.FACTORY_ID),
            refresh_loader=partial(fetch_records_snapshot, Config.FACTORY_ID, retries=1),
        )
    return st.session_state["records_store"]


store = _get_store()
gate = SecurityGate()
log_collector = LogCollector("operator_log")
target_rate = Config.TARGET_FLOW_RATE_TON_H

# Main app title
st.title("🏭 Rendering Plant Process Dashboard")
st.markdown("**Cooking time, line stops and flow rate for the digester line**")

# Sidebar with info
with st.sidebar:
    st.header("ℹ️ About")
    st.markdown(f"""
    **Net process time** is the union of today's cooking cycles minus
    timestamped line stops. Downtime entered only as hours is shown but
    not deducted.

    **Flow rate** = raw material consumed ÷ net process hours
    (target {target_rate} t/h).

    Records older than {Config.LOCK_WINDOW_MINUTES:g} minutes need the
    supervisor release password to finalize, resume, edit or delete.
    """)

    today = plant_now().date()
    selected_day = st.date_input(
        "Day",
        value=today,
        max_value=today,
        key="selected_day"
    )

    if st.button("🔄 Reload records", use_container_width=True):
        logger.info("Records reload requested from sidebar")
        store.mark_stale()

    if store.last_error is not None:
        st.warning(f"⚠️ Showing last loaded records: {store.last_error}")


def _render_live_section(day: date):
    now = plant_now()
    snapshot = store.current()
    view = build_live_view(day, now, snapshot)

    display_live_panel(view, target_rate)
    st.divider()
    display_process_time_cards(view.metrics)

    # A cycle opened or closed elsewhere changes the cadence; the timer is
    # only set on a full run
    if view.refresh_seconds != refresh_every:
        logger.info(f"Refresh cadence changed to {view.refresh_seconds:g}s")
        st.rerun()


def _render_hourly_section(day: date):
    snapshot = store.current()
    hourly_df = calculate_hourly_active_breakdown(
        day, plant_now(), snapshot.cycles, snapshot.downtime, target_rate
    )
    display_hourly_breakdown(hourly_df, target_rate)


# Live panel: a fragment re-running on the refresh cadence; Streamlit
# drops the timer when the session ends
initial_now = plant_now()
initial_snapshot = store.current()
is_active = find_open_cycle(selected_day, initial_now, initial_snapshot.cycles) is not None
refresh_every = cadence_for(is_active)
# Reload at least once per tick so records written elsewhere show up
store.max_age_seconds = refresh_every

st.header("⏱️ Live Process")
st.fragment(run_every=timedelta(seconds=refresh_every))(_render_live_section)(selected_day)

st.divider()

# Controls only apply to the current day
if selected_day == today:
    col1, col2 = st.columns(2)
    with col1:
        render_cycle_controls(selected_day, initial_now, initial_snapshot, store, gate, log_collector, Config.FACTORY_ID)
    with col2:
        render_downtime_controls(selected_day, initial_now, initial_snapshot, store, gate, log_collector, Config.FACTORY_ID)
    st.divider()

render_record_tables(selected_day, initial_now, initial_snapshot, store, gate, log_collector)

st.divider()

st.fragment(run_every=timedelta(seconds=Config.IDLE_REFRESH_SECONDS))(_render_hourly_section)(selected_day)

render_compact_log_area(log_collector)
