"""
Operator Log UI Component

Keeps a short, per-session trail of operator actions (cycles started and
closed, stops, releases of locked records) and mirrors each entry to the
application logger.
"""

import logging
import streamlit as st
from typing import List, Dict

from core.process.clock import plant_now

logger = logging.getLogger(__name__)

MAX_ENTRIES = 200

LEVEL_ICONS = {
    "success": "🟢",
    "warning": "🟡",
    "error": "🔴",
    "info": "🔵",
}


class LogCollector:
    """Collects operator log entries in Streamlit session state."""

    def __init__(self, session_key: str = "operator_log"):
        self.session_key = session_key
        if session_key not in st.session_state:
            st.session_state[session_key] = []

    def add_info(self, message: str):
        self._add_log("info", message, logging.INFO)

    def add_success(self, message: str):
        self._add_log("success", message, logging.INFO)

    def add_warning(self, message: str):
        self._add_log("warning", message, logging.WARNING)

    def add_error(self, message: str):
        self._add_log("error", message, logging.ERROR)

    def _add_log(self, level: str, message: str, log_level: int):
        logger.log(log_level, message)
        entries = st.session_state[self.session_key]
        entries.append({
            "timestamp": plant_now().strftime("%H:%M:%S"),
            "level": level,
            "message": message,
        })
        # Oldest entries are dropped first
        del entries[:-MAX_ENTRIES]

    def clear(self):
        st.session_state[self.session_key] = []

    def get_logs(self) -> List[Dict]:
        return st.session_state.get(self.session_key, [])


def render_compact_log_area(log_collector: LogCollector):
    """
    Render the operator log as a collapsible list, newest first.

    Args:
        log_collector: LogCollector instance with messages
    """
    logs = log_collector.get_logs()

    if not logs:
        return

    with st.expander(f"📋 Operator log ({len(logs)} entries)", expanded=False):
        for log in reversed(logs):
            icon = LEVEL_ICONS.get(log.get("level", "info"), "⚪")
            st.markdown(f"{icon} `[{log.get('timestamp', '')}]` {log.get('message', '')}")

        if st.button("Clear Log", key="clear_operator_log"):
            log_collector.clear()
            st.rerun()
