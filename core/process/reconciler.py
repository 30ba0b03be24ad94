"""
Net-Active-Time Reconciler

Merges cooking cycles and downtime for one day into active / inactive
segments and sums the active duration.

All functions are pure: they take the evaluation instant `now` explicitly
and keep no state between calls, so every tick recomputes from scratch.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from core.time_windows.filters import (
    intersect_segments,
    merge_adjacent_segments,
    subtract_segments,
    total_duration_minutes,
)
from core.time_windows.models import TimeSegment
from .models import CookingCycle, DowntimeInterval, InstantDowntime, ManualDowntime, record_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessTimeBreakdown:
    """Container for one day's process-time accounting"""
    gross_active_minutes: float     # union of cycle spans
    downtime_minutes: float         # instant downtime inside cycle spans
    net_active_minutes: float       # gross minus downtime, never negative
    manual_downtime_minutes: float  # reported only, never subtracted

    def to_dict(self) -> dict:
        return {
            'gross_active_minutes': self.gross_active_minutes,
            'downtime_minutes': self.downtime_minutes,
            'net_active_minutes': self.net_active_minutes,
            'manual_downtime_minutes': self.manual_downtime_minutes,
        }


def find_open_cycle(day: date, now: datetime, cycles: Iterable[CookingCycle]) -> Optional[CookingCycle]:
    """
    Return the authoritative open cycle for `day`.

    If storage holds more than one open cycle, the most recently started
    one wins. Cycles starting after `now` are ignored.
    """
    open_cycles = [
        c for c in cycles
        if c.is_open and record_day(c.date) == day and c.start_datetime() <= now
    ]
    if not open_cycles:
        return None
    if len(open_cycles) > 1:
        logger.warning(
            f"{len(open_cycles)} open cooking cycles found for {day}; "
            f"using the most recently started"
        )
    return max(open_cycles, key=lambda c: c.start_datetime())


def find_active_downtime(now: datetime, downtime: Iterable[DowntimeInterval]) -> Optional[InstantDowntime]:
    """
    Return the authoritative ongoing downtime interval, if any.

    Only one stop may be open at a time; if storage holds several, the most
    recently started is used and the rest are ignored.
    """
    ongoing = [
        d for d in downtime
        if isinstance(d, InstantDowntime) and d.is_open and d.start <= now
    ]
    if not ongoing:
        return None
    if len(ongoing) > 1:
        logger.warning(
            f"{len(ongoing)} open downtime intervals found; using the most recently started"
        )
    return max(ongoing, key=lambda d: d.start)


def cycle_spans(day: date, now: datetime, cycles: Sequence[CookingCycle]) -> List[TimeSegment]:
    """
    Wall-clock spans of the day's cooking cycles, clamped to `now`.

    - Closed cycle: [start, end]
    - Authoritative open cycle: [start, now]
    - Other open cycles, and any cycle starting after `now`: excluded
    """
    open_cycle = find_open_cycle(day, now, cycles)
    spans = []

    for cycle in cycles:
        if record_day(cycle.date) != day:
            continue

        start = cycle.start_datetime()
        if start > now:
            continue

        if cycle.is_open:
            if cycle is not open_cycle:
                continue
            end = now
        else:
            end = cycle.end_datetime()

        spans.append(TimeSegment(start, end, "active").clamp_end(now))

    return [s for s in spans if not s.is_empty]


def downtime_spans(now: datetime, downtime: Sequence[DowntimeInterval]) -> List[TimeSegment]:
    """
    Wall-clock spans of instant-based downtime, clamped to `now`.

    Manual (duration-only) downtime has no position in the day and is
    skipped here.
    """
    active = find_active_downtime(now, downtime)
    spans = []

    for record in downtime:
        if isinstance(record, ManualDowntime):
            continue

        if record.start > now:
            continue

        if record.is_open:
            if record is not active:
                continue
            end = now
        else:
            end = record.end

        spans.append(TimeSegment(record.start, end, "downtime").clamp_end(now))

    return [s for s in spans if not s.is_empty]


def build_process_segments(
    day: date,
    now: datetime,
    cycles: Sequence[CookingCycle],
    downtime: Sequence[DowntimeInterval]
) -> List[TimeSegment]:
    """
    Split the day's cooking activity into ordered active / downtime segments.

    Args:
        day: Calendar day under evaluation
        now: Evaluation instant (plant-local)
        cycles: All cooking cycles (unfiltered)
        downtime: All downtime intervals (unfiltered)

    Returns:
        Segments sorted by start, described "active" or "downtime"
    """
    cooking = merge_adjacent_segments(cycle_spans(day, now, list(cycles)))
    stops = intersect_segments(cooking, downtime_spans(now, list(downtime)))
    active = subtract_segments(cooking, stops)

    segments = [TimeSegment(s.start, s.end, "active") for s in active]
    segments += [TimeSegment(s.start, s.end, "downtime") for s in merge_adjacent_segments(stops)]
    return sorted(segments, key=lambda s: s.start)


def reconcile_breakdown(
    day: date,
    now: datetime,
    cycles: Sequence[CookingCycle],
    downtime: Sequence[DowntimeInterval]
) -> ProcessTimeBreakdown:
    """Gross, downtime, net and manual downtime minutes for `day`"""
    cycles = list(cycles)
    downtime = list(downtime)

    cooking = merge_adjacent_segments(cycle_spans(day, now, cycles))
    gross = total_duration_minutes(cooking)

    stops = merge_adjacent_segments(
        intersect_segments(cooking, downtime_spans(now, downtime))
    )
    stopped = total_duration_minutes(stops)

    manual = sum(
        d.duration_hours * 60.0
        for d in downtime
        if isinstance(d, ManualDowntime) and record_day(d.date) == day
    )

    return ProcessTimeBreakdown(
        gross_active_minutes=gross,
        downtime_minutes=stopped,
        net_active_minutes=max(0.0, gross - stopped),
        manual_downtime_minutes=manual,
    )


def reconcile(
    day: date,
    now: datetime,
    cycles: Sequence[CookingCycle],
    downtime: Sequence[DowntimeInterval]
) -> float:
    """
    Net active minutes for `day` evaluated at `now`.

    Cycle spans are unioned, instant downtime overlapping them is removed
    (clamped overlap), and the remainder is summed. Manual downtime is not
    subtracted.

    Examples:
        >>> # 09:00-11:00 cycle with a 10:00-10:30 stop
        >>> reconcile(day, now, [cycle], [stop])
        90.0
    """
    return reconcile_breakdown(day, now, cycles, downtime).net_active_minutes
