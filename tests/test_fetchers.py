from datetime import date, datetime, time

import pytest

from core.process.models import InstantDowntime, ManualDowntime
from db import fetchers

DAY = date(2024, 3, 14)


def test_row_to_cycle_normalizes_times():
    cycle = fetchers.row_to_cycle({
        'id': 7,
        'date': DAY,
        'start_time': time(8, 30),
        'end_time': None,
        'created_at': '2024-03-14T11:30:00+00:00',
        'factory_id': 'f1',
    })

    assert cycle.id == "7"
    assert cycle.start_time == "08:30:00"
    assert cycle.is_open
    # America/Sao_Paulo is UTC-3
    assert cycle.created_at == datetime(2024, 3, 14, 8, 30)


def test_row_with_start_is_instant_downtime():
    record = fetchers.row_to_downtime({
        'id': 1,
        'date': DAY,
        'start_time': '2024-03-14T13:00:00+00:00',
        'end_time': '2024-03-14T13:45:00+00:00',
        'duration_hours': 0.75,
        'reason': 'Belt',
        'created_at': None,
    })

    assert isinstance(record, InstantDowntime)
    assert record.start == datetime(2024, 3, 14, 10, 0)
    assert record.duration_hours == pytest.approx(0.75)


def test_row_without_start_is_manual_downtime():
    record = fetchers.row_to_downtime({
        'id': 2,
        'date': DAY,
        'start_time': None,
        'end_time': None,
        'duration_hours': '1.25',
        'reason': None,
    })

    assert isinstance(record, ManualDowntime)
    assert record.duration_hours == 1.25
    assert record.reason == ""


class TestSnapshotRetries:
    @pytest.fixture(autouse=True)
    def no_sleep(self, monkeypatch):
        monkeypatch.setattr(fetchers.time, "sleep", lambda seconds: None)

    @pytest.fixture
    def empty_sources(self, monkeypatch):
        for name in ("fetch_downtime_intervals", "fetch_production_entries", "fetch_raw_material_receipts"):
            monkeypatch.setattr(fetchers, name, lambda factory_id=None: [])

    def test_retries_until_success(self, monkeypatch, empty_sources):
        attempts = []

        def flaky_cycles(factory_id=None):
            attempts.append(factory_id)
            if len(attempts) < 3:
                raise ConnectionError("connection reset")
            return []

        monkeypatch.setattr(fetchers, "fetch_cooking_cycles", flaky_cycles)

        snapshot = fetchers.fetch_records_snapshot("f1", retries=3)

        assert attempts == ["f1", "f1", "f1"]
        assert snapshot.cycles == []
        assert snapshot.fetched_at is not None

    def test_raises_after_last_attempt(self, monkeypatch, empty_sources):
        def down(factory_id=None):
            raise ConnectionError("database unavailable")

        monkeypatch.setattr(fetchers, "fetch_cooking_cycles", down)

        with pytest.raises(ConnectionError):
            fetchers.fetch_records_snapshot(retries=2)


def test_single_attempt_never_sleeps(monkeypatch):
    sleeps = []
    monkeypatch.setattr(fetchers.time, "sleep", sleeps.append)

    def down(factory_id=None):
        raise ConnectionError("database unavailable")

    monkeypatch.setattr(fetchers, "fetch_cooking_cycles", down)

    with pytest.raises(ConnectionError):
        fetchers.fetch_records_snapshot(retries=1)
    assert sleeps == []
