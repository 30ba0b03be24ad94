import pytest

from analysis.daily_metrics import build_live_view, calculate_daily_metrics
from core.process.models import ProductionEntry, RawMaterialReceipt
from core.process.snapshot import RecordsSnapshot
from conftest import DAY, at


@pytest.fixture
def production():
    return [ProductionEntry(id="p1", date=DAY, mp_used=9500)]


@pytest.fixture
def receipts():
    return [RawMaterialReceipt(id="r1", date=DAY, quantity=8000)]


def test_no_cycles_gives_zero_rate(production, receipts):
    metrics = calculate_daily_metrics(DAY, at("12:00"), [], [], production, receipts)

    assert metrics.net_active_minutes == 0
    assert metrics.rate_ton == 0.0
    assert metrics.remaining_kg == -1500.0


def test_daily_metrics(make_cycle, make_stop, production, receipts, manual_stop):
    metrics = calculate_daily_metrics(
        DAY, at("12:00"),
        [make_cycle("09:00", "11:00")],
        [make_stop("10:00", "10:30"), manual_stop],
        production, receipts,
    )

    assert metrics.gross_active_minutes == pytest.approx(120)
    assert metrics.downtime_minutes == pytest.approx(30)
    assert metrics.net_active_minutes == pytest.approx(90)
    assert metrics.net_active_hours == pytest.approx(1.5)
    assert metrics.manual_downtime_minutes == pytest.approx(90)
    assert metrics.rate_ton == pytest.approx(9.5 / 1.5)
    assert metrics.rate_kg == pytest.approx(9500 / 1.5)


class TestLiveView:
    def test_idle(self, make_cycle, production, receipts):
        snapshot = RecordsSnapshot(cycles=[make_cycle("06:00", "07:00")], production=production, receipts=receipts)
        view = build_live_view(DAY, at("12:00"), snapshot)

        assert not view.is_active
        assert not view.is_stopped
        assert view.elapsed_string == "01:00:00"
        assert view.refresh_seconds == 60
        assert (view.remaining_val, view.remaining_unit) == (-1.5, "t")

    def test_active(self, make_cycle):
        snapshot = RecordsSnapshot(cycles=[make_cycle("09:30")])
        view = build_live_view(DAY, at("10:00"), snapshot)

        assert view.is_active
        assert not view.is_stopped
        assert view.elapsed_string == "00:30:00"
        assert view.refresh_seconds == 1
        assert view.open_cycle.start_time == "09:30"

    def test_stopped_needs_open_cycle(self, make_cycle, make_stop):
        stop = make_stop("09:45")

        stopped = build_live_view(DAY, at("10:00"), RecordsSnapshot(cycles=[make_cycle("09:30")], downtime=[stop]))
        assert stopped.is_stopped
        assert stopped.active_downtime is stop
        assert stopped.elapsed_string == "00:15:00"

        idle = build_live_view(DAY, at("10:00"), RecordsSnapshot(downtime=[stop]))
        assert not idle.is_stopped

    def test_elapsed_ticks_with_now(self, make_cycle):
        snapshot = RecordsSnapshot(cycles=[make_cycle("09:30")])

        assert build_live_view(DAY, at("10:00"), snapshot).elapsed_string == "00:30:00"
        assert build_live_view(DAY, at("10:10"), snapshot).elapsed_string == "00:40:00"

    def test_to_dict_keys(self):
        view = build_live_view(DAY, at("10:00"), RecordsSnapshot())
        assert view.to_dict() == {
            'rateTon': 0.0,
            'remainingVal': 0.0,
            'remainingUnit': 'kg',
            'elapsedString': '00:00:00',
            'isActive': False,
            'isStopped': False,
        }
