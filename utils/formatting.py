"""
Formatting Utilities

Display formatting for process metrics: elapsed time, durations, masses
and timestamps. Formatting never alters the numbers it is given.
"""

import logging
import math
import pandas as pd
from datetime import datetime
from typing import Tuple

logger = logging.getLogger(__name__)

TONNE_THRESHOLD_KG = 1000.0


def format_timestamp(value) -> str:
    """
    Convert a timestamp to readable format (YYYY-MM-DD HH:MM:SS), handling potential errors.

    Args:
        value: ISO timestamp string, datetime object, or None

    Returns:
        Formatted timestamp string or empty string if invalid
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    try:
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%d %H:%M:%S")
        text = str(value)
        if text.endswith("Z"):
            text = text.replace("Z", "+00:00")
        return datetime.fromisoformat(text).strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, TypeError):
        return str(value) if value else ""


def format_elapsed(minutes: float) -> str:
    """
    Format a duration in minutes as zero-padded HH:MM:SS.

    Hours are not wrapped at 24. Negative input is shown as 00:00:00.

    Example:
        >>> format_elapsed(90.5)
        '01:30:30'
    """
    total_seconds = max(0, int(math.floor(minutes * 60 + 1e-6)))
    hours, remainder = divmod(total_seconds, 3600)
    mins, secs = divmod(remainder, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d}"


def format_duration_hm(minutes: float) -> str:
    """Format a duration in minutes as '2h 05m'"""
    minutes = max(0.0, minutes)
    hours = int(minutes // 60)
    mins = int(minutes % 60)
    return f"{hours}h {mins:02d}m"


def format_remaining(remaining_kg: float) -> Tuple[float, str]:
    """
    Pick the display unit for a remaining-input value.

    |kg| >= 1000 is shown in tonnes, anything smaller in kilograms. The sign
    is kept: negative means more was consumed than received.

    Returns:
        (value, unit) with unit 't' or 'kg'

    Example:
        >>> format_remaining(-1500)
        (-1.5, 't')
    """
    if abs(remaining_kg) >= TONNE_THRESHOLD_KG:
        return remaining_kg / 1000.0, "t"
    return remaining_kg, "kg"


def format_mass(kg: float, decimals: int = 2) -> str:
    """Human-readable mass string using format_remaining's unit choice"""
    value, unit = format_remaining(kg)
    if unit == "kg":
        return f"{value:,.0f} kg"
    return f"{value:,.{decimals}f} t"


def format_rate(rate_ton: float) -> str:
    """Flow rate string, e.g. '7.13 t/h'"""
    return f"{rate_ton:.2f} t/h"
