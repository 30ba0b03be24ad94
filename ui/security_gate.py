"""
Security Gate UI Component

Credential challenge shown before editing or deleting a record older than
the edit-lock window.
"""

import streamlit as st
import logging
from datetime import datetime
from typing import Any, Callable

from core.process.clock import plant_now
from core.security.edit_lock import EditLockError, SecurityGate
from ui.log_display import LogCollector

logger = logging.getLogger(__name__)


def guarded_action(
    gate: SecurityGate,
    record: Any,
    now: datetime,
    action: Callable[[], None],
    description: str,
    log_collector: LogCollector,
    key: str
):
    """
    Run `action` straight away when the record is unlocked, otherwise open
    the credential dialog.

    Args:
        gate: SecurityGate consulted for every attempt
        record: Record being mutated (must expose created_at)
        now: Evaluation instant
        action: The mutation
        description: Shown in the log and the dialog
        log_collector: Operator log
        key: Unique widget key
    """
    if not gate.is_locked(getattr(record, "created_at", None), now):
        action()
        log_collector.add_success(description)
        st.rerun()
        return

    _credential_dialog(gate, record, action, description, log_collector, key)


@st.dialog("🔒 Historical record protection")
def _credential_dialog(
    gate: SecurityGate,
    record: Any,
    action: Callable[[], None],
    description: str,
    log_collector: LogCollector,
    key: str
):
    minutes = gate.lock_window.total_seconds() / 60.0
    st.write(
        f"This record is more than {minutes:.0f} minutes old. "
        f"Enter the release password to continue."
    )
    st.caption(description)

    credential = st.text_input("Release password", type="password", key=f"{key}_credential")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Cancel", key=f"{key}_cancel", use_container_width=True):
            st.rerun()
    with col2:
        if st.button("Confirm", key=f"{key}_confirm", type="primary", use_container_width=True):
            try:
                # Fresh now on every attempt
                gate.run(record, plant_now(), action, credential=credential or None)
            except EditLockError as e:
                st.error(f"❌ {e}")
                log_collector.add_warning(f"Release refused: {description}")
                return
            log_collector.add_success(f"{description} (released by supervisor)")
            st.rerun()
