"""
Process Controls UI Component

Operator controls for cooking cycles and line stops. Every write goes
through core.process.operations for validation, is persisted by the
records source, and marks the snapshot stale so the next tick recomputes
from fresh records. Finalizing, resuming and deleting an aged record pass
through the security gate.
"""

import streamlit as st
import logging
from datetime import date, datetime
from functools import partial

from core.process import operations
from core.process.clock import plant_now
from core.process.models import CookingCycle, InstantDowntime, ManualDowntime
from core.process.reconciler import find_active_downtime, find_open_cycle
from core.process.snapshot import RecordsSnapshot, SnapshotStore
from core.security.edit_lock import SecurityGate
from db import fetchers
from ui.log_display import LogCollector
from ui.security_gate import guarded_action
from utils.formatting import format_timestamp

logger = logging.getLogger(__name__)


def _persisted(store: SnapshotStore, log_collector: LogCollector, message: str):
    store.mark_stale()
    log_collector.add_success(message)
    st.rerun()


def _save_cycle_end(store: SnapshotStore, closed: CookingCycle):
    fetchers.update_cooking_cycle_end(closed)
    store.mark_stale()


def _resume_line(store: SnapshotStore, active: InstantDowntime):
    # Closed at the moment the release is granted, not when the button rendered
    closed = operations.stop_downtime(active, plant_now())
    fetchers.close_downtime(closed)
    store.mark_stale()


def _delete_cycle(store: SnapshotStore, cycle_id: str):
    fetchers.delete_cooking_cycle(cycle_id)
    store.mark_stale()


def _delete_downtime(store: SnapshotStore, downtime_id: str):
    fetchers.delete_downtime(downtime_id)
    store.mark_stale()


def render_cycle_controls(
    day: date,
    now: datetime,
    snapshot: RecordsSnapshot,
    store: SnapshotStore,
    gate: SecurityGate,
    log_collector: LogCollector,
    factory_id: str = None
):
    """Start / finalize the open cycle, or log a completed one"""
    st.markdown("**Cooking Cycle**")
    open_cycle = find_open_cycle(day, now, snapshot.cycles)

    try:
        if open_cycle is None:
            start_time = st.text_input("Start (HH:MM)", value=now.strftime("%H:%M"), key="cycle_start")
            if st.button("▶️ Start Cycle", key="cycle_start_btn", type="primary"):
                cycle = operations.start_cycle(day, start_time, snapshot.cycles, now, factory_id)
                fetchers.insert_cooking_cycle(cycle)
                _persisted(store, log_collector, f"Cycle started at {cycle.start_time}")
        else:
            end_time = st.text_input("End (HH:MM)", value=now.strftime("%H:%M"), key="cycle_end")
            if st.button("⏹️ Finalize Cycle", key="cycle_end_btn", type="primary"):
                closed = operations.close_cycle(open_cycle, end_time)
                guarded_action(
                    gate, open_cycle, now,
                    action=partial(_save_cycle_end, store, closed),
                    description=f"Cycle {closed.start_time}–{closed.end_time} finalized",
                    log_collector=log_collector,
                    key=f"gate_finalize_{open_cycle.id}",
                )

        with st.expander("Log a completed cycle"):
            col1, col2 = st.columns(2)
            with col1:
                logged_start = st.text_input("Start", key="logged_cycle_start", placeholder="08:00")
            with col2:
                logged_end = st.text_input("End", key="logged_cycle_end", placeholder="12:30")
            if st.button("Save Cycle", key="logged_cycle_btn"):
                cycle = operations.log_cycle(day, logged_start, logged_end, now, factory_id)
                fetchers.insert_cooking_cycle(cycle)
                _persisted(store, log_collector, f"Cycle {cycle.start_time}–{cycle.end_time} logged")

    except ValueError as e:
        st.error(f"❌ {e}")
        log_collector.add_error(str(e))


def render_downtime_controls(
    day: date,
    now: datetime,
    snapshot: RecordsSnapshot,
    store: SnapshotStore,
    gate: SecurityGate,
    log_collector: LogCollector,
    factory_id: str = None
):
    """Stop / resume the line and record manual downtime"""
    st.markdown("**Line Stops**")
    active = find_active_downtime(now, snapshot.downtime)

    try:
        if active is None:
            reason = st.text_input("Stop reason", key="stop_reason", placeholder="Mechanical maintenance")
            if st.button("⛔ Stop Line", key="stop_btn"):
                interval = operations.start_downtime(now, snapshot.downtime, reason, factory_id)
                fetchers.insert_downtime(interval)
                _persisted(store, log_collector, f"Line stopped: {interval.reason}")
        else:
            st.warning(f"Stopped since {active.start:%H:%M:%S}: {active.reason}")
            if st.button("✅ Resume Line", key="resume_btn", type="primary"):
                # Validate before asking for a release
                operations.stop_downtime(active, now)
                guarded_action(
                    gate, active, now,
                    action=partial(_resume_line, store, active),
                    description=f"Line resumed (stopped since {active.start:%H:%M:%S})",
                    log_collector=log_collector,
                    key=f"gate_resume_{active.id}",
                )

        with st.expander("Record past downtime (hours)"):
            hours = st.number_input("Duration (hours)", min_value=0.0, step=0.1, key="manual_hours")
            manual_reason = st.text_input("Reason", key="manual_reason")
            if st.button("Save Downtime", key="manual_btn"):
                interval = operations.log_manual_downtime(day, hours, manual_reason, now, factory_id)
                fetchers.insert_downtime(interval)
                _persisted(store, log_collector, f"{interval.duration_hours:.2f} h downtime recorded")

    except ValueError as e:
        st.error(f"❌ {e}")
        log_collector.add_error(str(e))


def render_record_tables(
    day: date,
    now: datetime,
    snapshot: RecordsSnapshot,
    store: SnapshotStore,
    gate: SecurityGate,
    log_collector: LogCollector
):
    """List the day's cycles and stops; deleting an aged record needs a release"""
    cycles = [c for c in snapshot.cycles if c.date == day]
    stops = [d for d in snapshot.downtime if d.date == day]

    st.markdown("**Today's Cycles**")
    if not cycles:
        st.caption("No cycles recorded")
    for cycle in cycles:
        locked = gate.is_locked(cycle.created_at, now)
        col1, col2 = st.columns([5, 1])
        with col1:
            end = cycle.end_time or "open"
            st.text(f"{'🔒 ' if locked else ''}{cycle.start_time} → {end}  (created {format_timestamp(cycle.created_at)})")
        with col2:
            if st.button("🗑️", key=f"del_cycle_{cycle.id}"):
                guarded_action(
                    gate, cycle, now,
                    action=partial(_delete_cycle, store, cycle.id),
                    description=f"Deleted cycle {cycle.start_time}",
                    log_collector=log_collector,
                    key=f"gate_cycle_{cycle.id}",
                )

    st.markdown("**Today's Stops**")
    if not stops:
        st.caption("No stops recorded")
    for stop in stops:
        locked = gate.is_locked(stop.created_at, now)
        if isinstance(stop, ManualDowntime):
            label = f"{stop.duration_hours:.2f} h (manual)"
        elif isinstance(stop, InstantDowntime) and stop.is_open:
            label = f"{stop.start:%H:%M:%S} → ongoing"
        else:
            label = f"{stop.start:%H:%M:%S} → {stop.end:%H:%M:%S}"

        col1, col2 = st.columns([5, 1])
        with col1:
            st.text(f"{'🔒 ' if locked else ''}{label}  {stop.reason}")
        with col2:
            if st.button("🗑️", key=f"del_stop_{stop.id}"):
                guarded_action(
                    gate, stop, now,
                    action=partial(_delete_downtime, store, stop.id),
                    description=f"Deleted stop: {stop.reason}",
                    log_collector=log_collector,
                    key=f"gate_stop_{stop.id}",
                )
