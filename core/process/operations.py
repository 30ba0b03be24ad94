"""
Process Record Operations

Input validation and state transitions for cooking cycles and downtime.
Each function returns a new record; persisting it is the records
source's job. The single-open-record rule is enforced here, at the
boundary, rather than assumed of storage.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional

from .clock import parse_time_of_day
from .models import (
    CookingCycle,
    DowntimeInterval,
    InstantDowntime,
    ManualDowntime,
    record_day,
    time_of_day_string,
)

logger = logging.getLogger(__name__)

MIN_REASON_LENGTH = 3


class OpenRecordConflict(ValueError):
    """A second open cycle or downtime interval was about to be created"""


def validate_time_of_day(value: str) -> str:
    """
    Form-level validation of a time-of-day field.

    Returns:
        The value normalized to HH:MM:SS

    Raises:
        ValueError: If the value is not HH:MM or HH:MM:SS
    """
    return time_of_day_string(value)


def _validate_reason(reason: str) -> str:
    reason = (reason or "").strip()
    if len(reason) < MIN_REASON_LENGTH:
        raise ValueError(f"Reason must have at least {MIN_REASON_LENGTH} characters")
    return reason


def start_cycle(
    day: date,
    start_time: str,
    cycles: Iterable[CookingCycle],
    now: datetime,
    factory_id: Optional[str] = None
) -> CookingCycle:
    """
    Open a new cooking cycle on `day`.

    Raises:
        OpenRecordConflict: If `day` already has an open cycle
        ValueError: If `start_time` is malformed
    """
    start_time = validate_time_of_day(start_time)

    existing = [c for c in cycles if c.is_open and record_day(c.date) == day]
    if existing:
        raise OpenRecordConflict(
            f"Cycle started at {existing[0].start_time} on {day} is still open; close it first"
        )

    logger.info(f"Starting cooking cycle on {day} at {start_time}")
    return CookingCycle(
        id=None,
        date=day,
        start_time=start_time,
        end_time=None,
        created_at=now,
        factory_id=factory_id,
    )


def log_cycle(
    day: date,
    start_time: str,
    end_time: str,
    now: datetime,
    factory_id: Optional[str] = None
) -> CookingCycle:
    """
    Record an already completed cycle.

    Raises:
        ValueError: If either time is malformed or end is before start
    """
    return CookingCycle(
        id=None,
        date=day,
        start_time=validate_time_of_day(start_time),
        end_time=validate_time_of_day(end_time),
        created_at=now,
        factory_id=factory_id,
    )


def close_cycle(cycle: CookingCycle, end_time: str) -> CookingCycle:
    """
    Finalize an open cycle by setting its end time.

    Raises:
        ValueError: If the cycle is already closed, or end is before start
    """
    if not cycle.is_open:
        raise ValueError(f"Cycle {cycle.id} is already closed at {cycle.end_time}")

    end_time = validate_time_of_day(end_time)
    if parse_time_of_day(end_time) < parse_time_of_day(cycle.start_time):
        raise ValueError(
            f"End time {end_time} is before cycle start {cycle.start_time}; "
            f"overnight cycles are not supported"
        )

    return replace(cycle, end_time=end_time)


def start_downtime(
    now: datetime,
    downtime: Iterable[DowntimeInterval],
    reason: str,
    factory_id: Optional[str] = None
) -> InstantDowntime:
    """
    Stop the line at `now`.

    Raises:
        OpenRecordConflict: If a stop is already ongoing
        ValueError: If the reason is too short
    """
    reason = _validate_reason(reason)

    ongoing = [d for d in downtime if isinstance(d, InstantDowntime) and d.is_open]
    if ongoing:
        raise OpenRecordConflict(
            f"Line is already stopped since {ongoing[0].start:%H:%M:%S}; resume it first"
        )

    logger.info(f"Line stopped at {now:%Y-%m-%d %H:%M:%S}: {reason}")
    return InstantDowntime(
        id=None,
        date=now.date(),
        start=now,
        end=None,
        reason=reason,
        created_at=now,
        factory_id=factory_id,
    )


def stop_downtime(interval: InstantDowntime, now: datetime) -> InstantDowntime:
    """
    Resume the line: close an ongoing stop at `now`.

    The closed record's `duration_hours` follows from `end - start`.

    Raises:
        ValueError: If the interval is already closed or `now` precedes its start
    """
    if not interval.is_open:
        raise ValueError(f"Downtime {interval.id} is already closed")
    if now < interval.start:
        raise ValueError(f"Cannot close downtime before it started ({interval.start})")

    closed = replace(interval, end=now)
    logger.info(f"Line resumed at {now:%H:%M:%S} after {closed.duration_hours:.2f} h")
    return closed


def log_manual_downtime(
    day: date,
    duration_hours: float,
    reason: str,
    now: datetime,
    factory_id: Optional[str] = None
) -> ManualDowntime:
    """
    Record downtime after the fact as a number of hours.

    Raises:
        ValueError: If the duration is not positive or the reason is too short
    """
    reason = _validate_reason(reason)

    try:
        duration_hours = float(duration_hours)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid downtime duration: {duration_hours!r}")

    return ManualDowntime(
        id=None,
        date=day,
        duration_hours=duration_hours,
        reason=reason,
        created_at=now,
        factory_id=factory_id,
    )
