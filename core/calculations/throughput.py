"""
Throughput Calculation Functions

Converts net active process time plus the day's material totals into a
flow rate (t/h) and a remaining-input projection, and breaks the day's
activity down per hour.
"""

import pandas as pd
import numpy as np
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple
from datetime import date, datetime, timedelta

from core.process.models import (
    CookingCycle,
    DowntimeInterval,
    ProductionEntry,
    RawMaterialReceipt,
    record_day,
)
from core.process.reconciler import build_process_segments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterialTotals:
    """Material totals for one day, in kg"""
    total_consumption: float  # raw material consumed by production entries
    total_input_kg: float     # raw material received


@dataclass(frozen=True)
class ThroughputEstimate:
    """Container for throughput estimation results"""
    rate_ton: float           # t/h over net active time
    remaining_kg: float       # received minus consumed; may be negative
    total_consumption: float  # kg

    @property
    def rate_kg(self) -> float:
        return self.rate_ton * 1000.0

    def to_dict(self) -> dict:
        return {
            'rate_ton': self.rate_ton,
            'remaining_kg': self.remaining_kg,
            'total_consumption': self.total_consumption,
        }


def material_totals_for_day(
    day: date,
    production: Iterable[ProductionEntry],
    receipts: Iterable[RawMaterialReceipt]
) -> MaterialTotals:
    """
    Sum the day's material consumption and receipts.

    Args:
        day: Calendar day under evaluation
        production: All production entries (unfiltered)
        receipts: All raw material receipts (unfiltered)

    Returns:
        MaterialTotals for the day
    """
    consumption = sum(
        float(p.mp_used or 0) for p in production if record_day(p.date) == day
    )
    received = sum(
        float(r.quantity or 0) for r in receipts if record_day(r.date) == day
    )
    return MaterialTotals(total_consumption=consumption, total_input_kg=received)


def estimate(net_active_minutes: float, material_totals: MaterialTotals) -> ThroughputEstimate:
    """
    Estimate flow rate and remaining raw material.

    rate_ton = consumption [t] / net active time [h]. A line with no net
    active time reports exactly 0.0.

    Args:
        net_active_minutes: Output of the reconciler
        material_totals: Day totals

    Returns:
        ThroughputEstimate

    Examples:
        >>> est = estimate(120, MaterialTotals(total_consumption=12000, total_input_kg=15000))
        >>> est.rate_ton, est.remaining_kg
        (6.0, 3000.0)
    """
    consumption = float(material_totals.total_consumption)

    if net_active_minutes > 0:
        rate_ton = consumption / 1000.0 / (net_active_minutes / 60.0)
    else:
        rate_ton = 0.0

    remaining_kg = float(material_totals.total_input_kg) - consumption

    return ThroughputEstimate(
        rate_ton=rate_ton,
        remaining_kg=remaining_kg,
        total_consumption=consumption,
    )


def compare_to_target(rate_ton: float, target_rate_ton_h: float) -> Tuple[float, bool]:
    """
    Compare a flow rate against the target.

    Returns:
        (difference, is_below_target)
    """
    difference = rate_ton - target_rate_ton_h
    return difference, difference < 0


def calculate_hourly_active_breakdown(
    day: date,
    now: datetime,
    cycles: Sequence[CookingCycle],
    downtime: Sequence[DowntimeInterval],
    target_rate_ton_h: float
) -> pd.DataFrame:
    """
    Break the day's process time down per hour.

    Args:
        day: Calendar day under evaluation
        now: Evaluation instant
        cycles: All cooking cycles (unfiltered)
        downtime: All downtime intervals (unfiltered)
        target_rate_ton_h: Nominal flow rate used to estimate hourly volume

    Returns:
        DataFrame with 24 rows and columns:
        - hour_start, hour_end
        - active_minutes: net active minutes in the hour
        - downtime_minutes: stopped minutes inside cycle spans
        - estimated_volume_ton: active minutes at the target rate
    """
    segments = build_process_segments(day, now, cycles, downtime)
    day_start = datetime.combine(day, datetime.min.time())

    hourly_data = []
    for hour in range(24):
        hour_start = day_start + timedelta(hours=hour)
        hour_end = hour_start + timedelta(hours=1)

        active_sec = 0.0
        downtime_sec = 0.0
        for segment in segments:
            overlap_start = max(segment.start, hour_start)
            overlap_end = min(segment.end, hour_end)
            if overlap_end <= overlap_start:
                continue
            seconds = (overlap_end - overlap_start).total_seconds()
            if segment.description == "downtime":
                downtime_sec += seconds
            else:
                active_sec += seconds

        hourly_data.append({
            'hour_start': hour_start,
            'hour_end': hour_end,
            'active_minutes': active_sec / 60.0,
            'downtime_minutes': downtime_sec / 60.0,
        })

    result_df = pd.DataFrame(hourly_data)
    result_df['estimated_volume_ton'] = np.clip(
        result_df['active_minutes'] * (target_rate_ton_h / 60.0), 0.0, None
    )
    logger.debug(f"Calculated hourly breakdown for {day}: {len(result_df)} hours")

    return result_df
