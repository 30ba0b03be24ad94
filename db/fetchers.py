"""
Data Fetchers
Database query functions for process records: cooking cycles, downtime,
production entries and raw material receipts, plus the writes issued by
the process controls
"""
import logging
import time
from typing import List, Optional

from psycopg2.extras import RealDictCursor

from config import Config
from core.process.clock import plant_now, to_plant_local, to_storage_instant
from core.process.models import (
    CookingCycle,
    DowntimeInterval,
    InstantDowntime,
    ManualDowntime,
    ProductionEntry,
    RawMaterialReceipt,
    time_of_day_string,
)
from core.process.snapshot import RecordsSnapshot
from db.connections import get_records_connection

logger = logging.getLogger(__name__)


def _factory_clause(factory_id: Optional[str]):
    if factory_id:
        return "WHERE factory_id = %s", (factory_id,)
    return "", ()


def _fetch_rows(query: str, params: tuple) -> List[dict]:
    with get_records_connection() as conn:
        cursor = conn.cursor(cursor_factory=RealDictCursor)
        cursor.execute(query, params)
        rows = cursor.fetchall()
        cursor.close()
    return rows

# ============================================================================
# ROW MAPPING
# ============================================================================

def row_to_cycle(row: dict) -> CookingCycle:
    """Map a cooking_time_records row to a CookingCycle"""
    return CookingCycle(
        id=str(row['id']),
        date=row['date'],
        start_time=time_of_day_string(row['start_time']),
        end_time=time_of_day_string(row['end_time']) if row.get('end_time') else None,
        created_at=to_plant_local(row.get('created_at')),
        factory_id=row.get('factory_id'),
    )


def row_to_downtime(row: dict) -> DowntimeInterval:
    """
    Map a downtime_records row to its variant.

    Rows with a start instant are InstantDowntime; rows carrying only
    duration_hours are ManualDowntime.
    """
    start = to_plant_local(row.get('start_time'))
    if start is not None:
        return InstantDowntime(
            id=str(row['id']),
            date=row['date'],
            start=start,
            end=to_plant_local(row.get('end_time')),
            reason=row.get('reason') or "",
            created_at=to_plant_local(row.get('created_at')),
            factory_id=row.get('factory_id'),
        )

    return ManualDowntime(
        id=str(row['id']),
        date=row['date'],
        duration_hours=float(row['duration_hours']),
        reason=row.get('reason') or "",
        created_at=to_plant_local(row.get('created_at')),
        factory_id=row.get('factory_id'),
    )

# ============================================================================
# READS
# ============================================================================

def fetch_cooking_cycles(factory_id: Optional[str] = None) -> List[CookingCycle]:
    """Fetch all cooking cycles (filtering by day is the engine's job)"""
    where, params = _factory_clause(factory_id)
    rows = _fetch_rows(f"""
        SELECT id, factory_id, date, start_time, end_time, created_at
        FROM cooking_time_records
        {where}
        ORDER BY date, start_time
    """, params)
    return [row_to_cycle(row) for row in rows]


def fetch_downtime_intervals(factory_id: Optional[str] = None) -> List[DowntimeInterval]:
    """Fetch all downtime intervals"""
    where, params = _factory_clause(factory_id)
    rows = _fetch_rows(f"""
        SELECT id, factory_id, date, start_time, end_time, duration_hours, reason, created_at
        FROM downtime_records
        {where}
        ORDER BY date
    """, params)

    intervals = []
    for row in rows:
        try:
            intervals.append(row_to_downtime(row))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed downtime record {row.get('id')}: {e}")
    return intervals


def fetch_production_entries(factory_id: Optional[str] = None) -> List[ProductionEntry]:
    """Fetch all production entries"""
    where, params = _factory_clause(factory_id)
    rows = _fetch_rows(f"""
        SELECT id, date, shift, mp_used, sebo_produced, fco_produced,
               farinheta_produced, losses, created_at
        FROM production
        {where}
    """, params)
    return [
        ProductionEntry(
            id=str(row['id']),
            date=row['date'],
            mp_used=float(row.get('mp_used') or 0),
            shift=row.get('shift') or "",
            sebo_produced=float(row.get('sebo_produced') or 0),
            fco_produced=float(row.get('fco_produced') or 0),
            farinheta_produced=float(row.get('farinheta_produced') or 0),
            losses=float(row.get('losses') or 0),
            created_at=to_plant_local(row.get('created_at')),
        )
        for row in rows
    ]


def fetch_raw_material_receipts(factory_id: Optional[str] = None) -> List[RawMaterialReceipt]:
    """Fetch all raw material receipts"""
    where, params = _factory_clause(factory_id)
    rows = _fetch_rows(f"""
        SELECT id, date, supplier, type, quantity, created_at
        FROM raw_materials
        {where}
    """, params)
    return [
        RawMaterialReceipt(
            id=str(row['id']),
            date=row['date'],
            quantity=float(row.get('quantity') or 0),
            supplier=row.get('supplier') or "",
            material_type=row.get('type') or "",
            created_at=to_plant_local(row.get('created_at')),
        )
        for row in rows
    ]


def fetch_records_snapshot(
    factory_id: Optional[str] = None,
    retries: Optional[int] = None,
    backoff_seconds: float = 0.5
) -> RecordsSnapshot:
    """
    Fetch every record the engine needs, retrying failed attempts.

    Args:
        factory_id: Restrict to one factory (None = all)
        retries: Attempts before giving up (defaults to Config.FETCH_RETRIES)
        backoff_seconds: Base delay between attempts, doubled each time

    Raises:
        The last database error once all attempts failed
    """
    attempts = max(1, retries if retries is not None else Config.FETCH_RETRIES)

    for attempt in range(1, attempts + 1):
        try:
            return RecordsSnapshot(
                cycles=fetch_cooking_cycles(factory_id),
                downtime=fetch_downtime_intervals(factory_id),
                production=fetch_production_entries(factory_id),
                receipts=fetch_raw_material_receipts(factory_id),
                fetched_at=plant_now(),
            )
        except Exception as e:
            if attempt == attempts:
                logger.error(f"Snapshot fetch failed after {attempts} attempts: {e}")
                raise
            delay = backoff_seconds * (2 ** (attempt - 1))
            logger.warning(f"Snapshot fetch attempt {attempt} failed: {e}; retrying in {delay:.1f}s")
            time.sleep(delay)

# ============================================================================
# WRITES
# ============================================================================

def _execute(query: str, params: tuple) -> Optional[str]:
    with get_records_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(query, params)
        row = cursor.fetchone() if cursor.description else None
        cursor.close()
    return str(row[0]) if row else None


def insert_cooking_cycle(cycle: CookingCycle) -> str:
    """Insert a cycle and return its new id"""
    return _execute("""
        INSERT INTO cooking_time_records (factory_id, date, start_time, end_time)
        VALUES (%s, %s, %s, %s)
        RETURNING id
    """, (cycle.factory_id, cycle.date, cycle.start_time, cycle.end_time))


def update_cooking_cycle_end(cycle: CookingCycle):
    """Persist the end time of a finalized cycle"""
    _execute(
        "UPDATE cooking_time_records SET end_time = %s WHERE id = %s",
        (cycle.end_time, cycle.id)
    )


def delete_cooking_cycle(cycle_id: str):
    _execute("DELETE FROM cooking_time_records WHERE id = %s", (cycle_id,))


def insert_downtime(interval: DowntimeInterval) -> str:
    """Insert a downtime interval of either variant and return its new id"""
    if isinstance(interval, ManualDowntime):
        params = (interval.factory_id, interval.date, None, None,
                  interval.duration_hours, interval.reason)
    else:
        params = (interval.factory_id, interval.date,
                  to_storage_instant(interval.start), to_storage_instant(interval.end),
                  interval.duration_hours or 0, interval.reason)

    return _execute("""
        INSERT INTO downtime_records (factory_id, date, start_time, end_time, duration_hours, reason)
        VALUES (%s, %s, %s, %s, %s, %s)
        RETURNING id
    """, params)


def close_downtime(interval: InstantDowntime):
    """Persist the end instant and recomputed duration of a closed stop"""
    _execute(
        "UPDATE downtime_records SET end_time = %s, duration_hours = %s WHERE id = %s",
        (to_storage_instant(interval.end), interval.duration_hours, interval.id)
    )


def delete_downtime(downtime_id: str):
    _execute("DELETE FROM downtime_records WHERE id = %s", (downtime_id,))

