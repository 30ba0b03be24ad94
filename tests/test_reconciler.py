from datetime import timedelta

import pytest

from core.process.reconciler import (
    build_process_segments,
    find_active_downtime,
    find_open_cycle,
    reconcile,
    reconcile_breakdown,
)
from conftest import DAY, at


def test_no_cycles_is_zero(day, make_stop):
    assert reconcile(day, at("12:00"), [], []) == 0
    assert reconcile(day, at("12:00"), [], [make_stop("10:00", "10:30")]) == 0


def test_single_closed_cycle(day, make_cycle):
    cycles = [make_cycle("09:00", "11:00")]
    assert reconcile(day, at("12:00"), cycles, []) == pytest.approx(120)


def test_closed_stop_inside_cycle(day, make_cycle, make_stop):
    cycles = [make_cycle("09:00", "11:00")]
    downtime = [make_stop("10:00", "10:30")]
    assert reconcile(day, at("12:00"), cycles, downtime) == pytest.approx(90)


def test_open_cycle_counts_up_to_now(day, make_cycle):
    now = at("10:00")
    cycles = [make_cycle((now - timedelta(minutes=30)).strftime("%H:%M"))]

    assert reconcile(day, now, cycles, []) == pytest.approx(30)
    assert reconcile(day, now + timedelta(minutes=10), cycles, []) == pytest.approx(40)


def test_reconcile_is_idempotent(day, make_cycle, make_stop):
    cycles = [make_cycle("08:00"), make_cycle("06:00", "07:00")]
    downtime = [make_stop("08:30")]
    now = at("09:15")

    first = reconcile(day, now, cycles, downtime)
    second = reconcile(day, now, cycles, downtime)
    assert first == second


def test_manual_downtime_is_not_subtracted(day, make_cycle, manual_stop):
    cycles = [make_cycle("09:00", "11:00")]
    breakdown = reconcile_breakdown(day, at("12:00"), cycles, [manual_stop])

    assert breakdown.net_active_minutes == pytest.approx(120)
    assert breakdown.manual_downtime_minutes == pytest.approx(90)


def test_cycle_starting_after_now_is_excluded(day, make_cycle):
    cycles = [make_cycle("09:00", "10:00"), make_cycle("13:00")]
    assert reconcile(day, at("12:00"), cycles, []) == pytest.approx(60)


def test_closed_cycle_is_clamped_to_now(day, make_cycle):
    cycles = [make_cycle("09:00", "11:00")]
    assert reconcile(day, at("10:15"), cycles, []) == pytest.approx(75)


def test_other_days_are_ignored(day, make_cycle):
    cycles = [make_cycle("09:00", "11:00", day=day - timedelta(days=1))]
    assert reconcile(day, at("12:00"), cycles, []) == 0


def test_overlapping_cycles_counted_once(day, make_cycle):
    cycles = [make_cycle("09:00", "11:00"), make_cycle("10:00", "12:00")]
    assert reconcile(day, at("13:00"), cycles, []) == pytest.approx(180)


class TestPartialOverlap:
    def test_stop_starting_before_cycle(self, day, make_cycle, make_stop):
        cycles = [make_cycle("09:00", "11:00")]
        downtime = [make_stop("08:30", "09:30")]
        assert reconcile(day, at("12:00"), cycles, downtime) == pytest.approx(90)

    def test_stop_ending_after_cycle(self, day, make_cycle, make_stop):
        cycles = [make_cycle("09:00", "11:00")]
        downtime = [make_stop("10:45", "11:30")]
        assert reconcile(day, at("12:00"), cycles, downtime) == pytest.approx(105)

    def test_stop_between_cycles_subtracts_nothing(self, day, make_cycle, make_stop):
        cycles = [make_cycle("08:00", "09:00"), make_cycle("10:00", "11:00")]
        downtime = [make_stop("09:00", "10:00")]
        assert reconcile(day, at("12:00"), cycles, downtime) == pytest.approx(120)

    def test_stop_covering_whole_cycle_is_never_negative(self, day, make_cycle, make_stop):
        cycles = [make_cycle("09:00", "10:00")]
        downtime = [make_stop("08:00", "11:00"), make_stop("09:15", "09:45")]
        breakdown = reconcile_breakdown(day, at("12:00"), cycles, downtime)

        assert breakdown.net_active_minutes == 0
        assert breakdown.downtime_minutes == pytest.approx(60)


def test_ongoing_stop_subtracts_up_to_now(day, make_cycle, make_stop):
    cycles = [make_cycle("09:00")]
    downtime = [make_stop("09:40")]
    assert reconcile(day, at("10:00"), cycles, downtime) == pytest.approx(40)


def test_monotonic_while_records_unchanged(day, make_cycle, make_stop):
    cycles = [make_cycle("06:00", "07:00"), make_cycle("08:00")]
    downtime = [make_stop("08:10", "08:20")]

    values = [
        reconcile(day, at("08:00") + timedelta(minutes=m), cycles, downtime)
        for m in range(0, 120, 5)
    ]
    assert values == sorted(values)


class TestAuthoritativeOpenRecords:
    def test_latest_open_cycle_wins(self, day, make_cycle):
        older = make_cycle("08:00")
        newer = make_cycle("09:30")

        assert find_open_cycle(day, at("10:00"), [older, newer]) is newer
        assert reconcile(day, at("10:00"), [older, newer], []) == pytest.approx(30)

    def test_latest_open_stop_wins(self, day, make_cycle, make_stop):
        older = make_stop("09:00")
        newer = make_stop("09:50")
        cycles = [make_cycle("08:00")]

        assert find_active_downtime(at("10:00"), [older, newer]) is newer
        assert reconcile(day, at("10:00"), cycles, [older, newer]) == pytest.approx(110)

    def test_manual_downtime_is_never_active(self, manual_stop):
        assert find_active_downtime(at("10:00"), [manual_stop]) is None


def test_build_process_segments(day, make_cycle, make_stop):
    segments = build_process_segments(
        day, at("12:00"),
        [make_cycle("09:00", "11:00")],
        [make_stop("10:00", "10:30")],
    )

    assert [s.description for s in segments] == ["active", "downtime", "active"]
    assert segments[0].start == at("09:00")
    assert segments[1].end == at("10:30")
    assert segments[2].end == at("11:00")


def test_breakdown_to_dict(make_cycle):
    breakdown = reconcile_breakdown(DAY, at("12:00"), [make_cycle("09:00", "10:00")], [])
    assert breakdown.to_dict() == {
        'gross_active_minutes': 60.0,
        'downtime_minutes': 0,
        'net_active_minutes': 60.0,
        'manual_downtime_minutes': 0,
    }
