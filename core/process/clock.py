"""
Plant Clock Helpers

The accounting engine works on naive plant-local wall-clock datetimes.
Storage instants are timezone-aware; these helpers convert at the boundary.
"""

import logging
from datetime import datetime, time
from typing import Optional, Union

import pytz
from dateutil import parser as dateutil_parser

from config import Config

logger = logging.getLogger(__name__)


def plant_now(timezone: Optional[str] = None) -> datetime:
    """Current plant-local wall-clock time, naive."""
    tz = pytz.timezone(timezone or Config.TIMEZONE)
    return datetime.now(tz).replace(tzinfo=None)


def to_plant_local(value: Union[str, datetime, None], timezone: Optional[str] = None) -> Optional[datetime]:
    """
    Convert a storage instant to naive plant-local time.

    Args:
        value: ISO string, datetime (aware or naive) or None
        timezone: Plant timezone name (defaults to Config.TIMEZONE)

    Returns:
        Naive datetime in plant-local time, or None

    Naive inputs are assumed to already be plant-local.
    """
    if value is None or value == "":
        return None

    if isinstance(value, str):
        value = dateutil_parser.isoparse(value)

    if value.tzinfo is None:
        return value

    tz = pytz.timezone(timezone or Config.TIMEZONE)
    return value.astimezone(tz).replace(tzinfo=None)


def to_storage_instant(value: Optional[datetime], timezone: Optional[str] = None) -> Optional[datetime]:
    """Attach the plant timezone to a naive plant-local datetime before writing it"""
    if value is None or value.tzinfo is not None:
        return value
    tz = pytz.timezone(timezone or Config.TIMEZONE)
    return tz.localize(value)


def parse_time_of_day(value: Union[str, time]) -> time:
    """
    Parse an "HH:MM" or "HH:MM:SS" time-of-day string.

    Raises:
        ValueError: If the string is not a valid time of day
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid time of day: {value!r}")

    text = value.strip()
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue

    raise ValueError(f"Invalid time of day: {value!r}. Use HH:MM or HH:MM:SS")
