"""
Records Snapshot

Holds the last successfully fetched set of records. The engine always
computes against the current snapshot; a mutation marks it stale so the
next read refetches, and a snapshot past its max age is reloaded so records
written elsewhere show up within one refresh interval.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from config import Config
from .clock import plant_now
from .models import CookingCycle, DowntimeInterval, ProductionEntry, RawMaterialReceipt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordsSnapshot:
    """In-memory copy of every record the engine needs"""
    cycles: List[CookingCycle] = field(default_factory=list)
    downtime: List[DowntimeInterval] = field(default_factory=list)
    production: List[ProductionEntry] = field(default_factory=list)
    receipts: List[RawMaterialReceipt] = field(default_factory=list)
    fetched_at: Optional[datetime] = None


class SnapshotStore:
    """
    Keeps the latest snapshot and reloads it when stale or too old.

    Records written by other operators only reach the engine through a
    reload, so a snapshot older than `max_age_seconds` counts as stale.
    """

    def __init__(
        self,
        loader: Callable[[], RecordsSnapshot],
        refresh_loader: Optional[Callable[[], RecordsSnapshot]] = None,
        max_age_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = plant_now
    ):
        """
        Args:
            loader: Fetches the first snapshot
            refresh_loader: Fetches later snapshots (defaults to `loader`)
            max_age_seconds: Age after which a snapshot is reloaded
                (defaults to Config.IDLE_REFRESH_SECONDS)
            clock: Source of the current plant-local time
        """
        self.loader = loader
        self.refresh_loader = refresh_loader or loader
        self.max_age_seconds = (
            max_age_seconds if max_age_seconds is not None else Config.IDLE_REFRESH_SECONDS
        )
        self.clock = clock
        self._snapshot: Optional[RecordsSnapshot] = None
        self._loaded_at: Optional[datetime] = None
        self._stale = True
        self._lock = threading.Lock()
        self.last_error: Optional[Exception] = None

    @property
    def is_stale(self) -> bool:
        if self._stale or self._loaded_at is None:
            return True
        age = (self.clock() - self._loaded_at).total_seconds()
        return age >= self.max_age_seconds

    def mark_stale(self):
        """Call after any successful mutation"""
        self._stale = True

    def refresh(self) -> RecordsSnapshot:
        """
        Reload from the loader.

        On failure the previous snapshot is kept (or an empty one if none was
        ever loaded) and the store stays stale so the next read retries.
        """
        with self._lock:
            loader = self.loader if self._snapshot is None else self.refresh_loader
            try:
                snapshot = loader()
            except Exception as e:
                self.last_error = e
                self._stale = True
                logger.error(f"Failed to refresh records snapshot: {e}")
                if self._snapshot is None:
                    return RecordsSnapshot()
                return self._snapshot

            self._snapshot = snapshot
            self._loaded_at = self.clock()
            self._stale = False
            self.last_error = None
            logger.debug(
                f"Snapshot refreshed: {len(snapshot.cycles)} cycles, "
                f"{len(snapshot.downtime)} downtime, {len(snapshot.production)} production"
            )
            return snapshot

    def current(self) -> RecordsSnapshot:
        """Return the snapshot, reloading first if it is stale or older than max age"""
        if self._snapshot is None or self.is_stale:
            return self.refresh()
        return self._snapshot
