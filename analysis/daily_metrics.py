"""
Daily Process Metrics
Combines the reconciler and the throughput estimator into daily metrics
and the live view model consumed by the dashboard
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from core.calculations.throughput import estimate, material_totals_for_day
from core.live.refresh import cadence_for
from core.process.models import CookingCycle, DowntimeInterval, ProductionEntry, RawMaterialReceipt
from core.process.reconciler import find_active_downtime, find_open_cycle, reconcile_breakdown
from core.process.snapshot import RecordsSnapshot
from utils.formatting import format_elapsed, format_remaining

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyMetrics:
    """Derived metrics for one day; recomputed from scratch on every tick"""
    net_active_minutes: float
    gross_active_minutes: float
    downtime_minutes: float
    manual_downtime_minutes: float
    rate_ton: float
    total_consumption: float
    total_input_kg: float
    remaining_kg: float

    @property
    def net_active_hours(self) -> float:
        return self.net_active_minutes / 60.0

    @property
    def rate_kg(self) -> float:
        return self.rate_ton * 1000.0


@dataclass(frozen=True)
class LiveProcessView:
    """What the live process panel renders"""
    rate_ton: float
    remaining_val: float
    remaining_unit: str
    elapsed_string: str
    is_active: bool
    is_stopped: bool
    refresh_seconds: float
    metrics: DailyMetrics
    open_cycle: Optional[CookingCycle] = None
    active_downtime: Optional[DowntimeInterval] = None

    def to_dict(self) -> dict:
        return {
            'rateTon': self.rate_ton,
            'remainingVal': self.remaining_val,
            'remainingUnit': self.remaining_unit,
            'elapsedString': self.elapsed_string,
            'isActive': self.is_active,
            'isStopped': self.is_stopped,
        }


def calculate_daily_metrics(
    day: date,
    now: datetime,
    cycles: Sequence[CookingCycle],
    downtime: Sequence[DowntimeInterval],
    production: Sequence[ProductionEntry],
    receipts: Sequence[RawMaterialReceipt]
) -> DailyMetrics:
    """
    Calculate process time, flow rate and remaining input for one day.

    Args:
        day: Calendar day under evaluation
        now: Evaluation instant (always fresh, never memoized)
        cycles: All cooking cycles
        downtime: All downtime intervals
        production: All production entries
        receipts: All raw material receipts

    Returns:
        DailyMetrics
    """
    breakdown = reconcile_breakdown(day, now, cycles, downtime)
    totals = material_totals_for_day(day, production, receipts)
    throughput = estimate(breakdown.net_active_minutes, totals)

    return DailyMetrics(
        net_active_minutes=breakdown.net_active_minutes,
        gross_active_minutes=breakdown.gross_active_minutes,
        downtime_minutes=breakdown.downtime_minutes,
        manual_downtime_minutes=breakdown.manual_downtime_minutes,
        rate_ton=throughput.rate_ton,
        total_consumption=throughput.total_consumption,
        total_input_kg=totals.total_input_kg,
        remaining_kg=throughput.remaining_kg,
    )


def build_live_view(day: date, now: datetime, snapshot: RecordsSnapshot) -> LiveProcessView:
    """
    Build the live panel model for `day` at `now`.

    - elapsed_string: the day's net active time as HH:MM:SS
    - is_active: an open cycle exists for the day
    - is_stopped: an ongoing stop coexists with the open cycle
    - refresh_seconds: 1 s while a cycle is open, 60 s otherwise
    """
    metrics = calculate_daily_metrics(
        day, now,
        snapshot.cycles, snapshot.downtime,
        snapshot.production, snapshot.receipts
    )

    open_cycle = find_open_cycle(day, now, snapshot.cycles)
    active_downtime = find_active_downtime(now, snapshot.downtime)
    is_active = open_cycle is not None
    is_stopped = is_active and active_downtime is not None

    remaining_val, remaining_unit = format_remaining(metrics.remaining_kg)

    return LiveProcessView(
        rate_ton=metrics.rate_ton,
        remaining_val=remaining_val,
        remaining_unit=remaining_unit,
        elapsed_string=format_elapsed(metrics.net_active_minutes),
        is_active=is_active,
        is_stopped=is_stopped,
        refresh_seconds=cadence_for(is_active),
        metrics=metrics,
        open_cycle=open_cycle,
        active_downtime=active_downtime,
    )
