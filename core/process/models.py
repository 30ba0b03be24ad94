"""
Process Record Models

Records the process-time accounting works on:
- CookingCycle: digester actively processing, scoped to one calendar day
- Downtime: line stopped, either instant-based or entered manually as hours
- ProductionEntry / RawMaterialReceipt: material totals for the day
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Union

from .clock import parse_time_of_day


@dataclass(frozen=True)
class CookingCycle:
    """
    A cooking cycle recorded by the operator.

    `start_time` / `end_time` are time-of-day strings (HH:MM[:SS]) on
    `date`. An absent `end_time` marks the open cycle. Overnight
    wraparound is not modeled.
    """
    id: Optional[str]
    date: date
    start_time: str
    end_time: Optional[str] = None
    created_at: Optional[datetime] = None
    factory_id: Optional[str] = None

    def __post_init__(self):
        """Validate times"""
        start = parse_time_of_day(self.start_time)
        if self.end_time is not None:
            end = parse_time_of_day(self.end_time)
            if end < start:
                raise ValueError(
                    f"Cycle end time ({self.end_time}) must not be before "
                    f"start time ({self.start_time})"
                )

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def start_datetime(self) -> datetime:
        return datetime.combine(self.date, parse_time_of_day(self.start_time))

    def end_datetime(self) -> Optional[datetime]:
        if self.end_time is None:
            return None
        return datetime.combine(self.date, parse_time_of_day(self.end_time))


@dataclass(frozen=True)
class InstantDowntime:
    """
    Downtime recorded with the "start stop" action.

    `start` / `end` are plant-local instants; `end` is None while the line
    is still stopped.
    """
    id: Optional[str]
    date: date
    start: datetime
    end: Optional[datetime] = None
    reason: str = ""
    created_at: Optional[datetime] = None
    factory_id: Optional[str] = None

    def __post_init__(self):
        if self.end is not None and self.end < self.start:
            raise ValueError(
                f"Downtime end ({self.end}) must not be before start ({self.start})"
            )

    @property
    def is_open(self) -> bool:
        return self.end is None

    @property
    def duration_hours(self) -> Optional[float]:
        """Closed duration in hours; None while ongoing"""
        if self.end is None:
            return None
        return (self.end - self.start).total_seconds() / 3600.0


@dataclass(frozen=True)
class ManualDowntime:
    """
    Downtime entered after the fact as a number of hours.

    Carries no position in the day, so it is reported but never subtracted
    from cycle spans.
    """
    id: Optional[str]
    date: date
    duration_hours: float
    reason: str = ""
    created_at: Optional[datetime] = None
    factory_id: Optional[str] = None

    def __post_init__(self):
        if self.duration_hours <= 0:
            raise ValueError(
                f"Manual downtime must be longer than zero hours, got {self.duration_hours}"
            )


DowntimeInterval = Union[InstantDowntime, ManualDowntime]


@dataclass(frozen=True)
class ProductionEntry:
    """Production record: raw material consumed and products made on a shift"""
    id: Optional[str]
    date: date
    mp_used: float
    shift: str = ""
    sebo_produced: float = 0.0
    fco_produced: float = 0.0
    farinheta_produced: float = 0.0
    losses: float = 0.0
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class RawMaterialReceipt:
    """Raw material received at the plant (kg)"""
    id: Optional[str]
    date: date
    quantity: float
    supplier: str = ""
    material_type: str = ""
    created_at: Optional[datetime] = None


def record_day(value: Union[date, datetime]) -> date:
    """Calendar day of a record date field (datetimes are truncated)"""
    if isinstance(value, datetime):
        return value.date()
    return value


def time_of_day_string(value: Union[str, time]) -> str:
    """Normalize a time-of-day value to HH:MM:SS"""
    return parse_time_of_day(value).strftime("%H:%M:%S")
