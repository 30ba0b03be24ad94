"""
Shared fixtures for the process accounting tests
"""
from datetime import date, datetime

import pytest

from core.process.models import CookingCycle, InstantDowntime, ManualDowntime


DAY = date(2024, 3, 14)


def at(hhmm: str, day: date = DAY) -> datetime:
    """Plant-local datetime on the test day"""
    hour, minute = hhmm.split(":")
    return datetime(day.year, day.month, day.day, int(hour), int(minute))


@pytest.fixture
def day():
    return DAY


@pytest.fixture
def make_cycle():
    counter = iter(range(1, 10000))

    def _make(start, end=None, day=DAY, created_at=None):
        return CookingCycle(
            id=str(next(counter)),
            date=day,
            start_time=start,
            end_time=end,
            created_at=created_at,
        )

    return _make


@pytest.fixture
def make_stop():
    counter = iter(range(1, 10000))

    def _make(start, end=None, day=DAY, reason="Maintenance"):
        return InstantDowntime(
            id=f"d{next(counter)}",
            date=day,
            start=at(start, day),
            end=at(end, day) if end else None,
            reason=reason,
        )

    return _make


@pytest.fixture
def manual_stop():
    return ManualDowntime(
        id="m1",
        date=DAY,
        duration_hours=1.5,
        reason="Boiler cleaning",
        created_at=at("08:00"),
    )
