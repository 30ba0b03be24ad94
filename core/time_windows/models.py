"""
Time Segment Models

Plain wall-clock segments used to account for process time:
- Cooking cycle spans
- Downtime spans
- Active / inactive breakdowns of a production day
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class TimeSegment:
    """
    Represents a single half-open time range [start, end).

    Segments are plant-local wall-clock ranges. Zero-length segments are
    allowed so callers can clamp spans without special cases; negative
    ones are rejected.
    """
    start: datetime
    end: datetime
    description: str = ""

    def __post_init__(self):
        """Validate time segment"""
        if self.end < self.start:
            raise ValueError(
                f"End time ({self.end}) must not be before start time ({self.start})"
            )

    @property
    def duration_minutes(self) -> float:
        """Calculate segment duration in minutes"""
        return (self.end - self.start).total_seconds() / 60.0

    @property
    def duration_hours(self) -> float:
        """Calculate segment duration in hours"""
        return self.duration_minutes / 60.0

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def contains(self, timestamp: datetime) -> bool:
        """Check if timestamp falls within this segment"""
        return self.start <= timestamp < self.end

    def overlaps_with(self, other: 'TimeSegment') -> bool:
        """Check if this segment overlaps with another"""
        return not (self.end <= other.start or self.start >= other.end)

    def intersection(self, other: 'TimeSegment') -> Optional['TimeSegment']:
        """Return the overlapping part of two segments, or None"""
        if not self.overlaps_with(other):
            return None
        return TimeSegment(
            max(self.start, other.start),
            min(self.end, other.end),
            self.description,
        )

    def clamp_end(self, limit: datetime) -> 'TimeSegment':
        """Cut the segment so it does not extend past `limit`"""
        if self.end <= limit:
            return self
        return TimeSegment(self.start, max(self.start, limit), self.description)

    def __repr__(self) -> str:
        desc = f" ({self.description})" if self.description else ""
        return (
            f"TimeSegment({self.start.strftime('%Y-%m-%d %H:%M:%S')} → "
            f"{self.end.strftime('%Y-%m-%d %H:%M:%S')}{desc})"
        )
