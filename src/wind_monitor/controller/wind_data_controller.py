"""Controller that runs the fetch → parse → merge → persist pipeline per owner."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol

from requests.exceptions import RequestException

from ..common.telemetry import TelemetryService
from ..domain.models import (
    DataSource,
    ParseOutcome,
    PipelineStatus,
    RefreshResult,
    WindObservation,
)
from ..domain.services.retention import (
    DEFAULT_DUPLICATE_TOLERANCE_MS,
    DEFAULT_RETENTION_LIMIT,
    merge_history,
)
from ..domain.services.summary import HistorySummary, direction_frequency, summarize_history
from ..errors import FetchError
from ..exporter.csv_exporter import export_history_csv
from ..infrastructure.repositories.data_interfaces import HistoryRepository
from ..logger.app_logger import get_logger
from ..parser import StrategyChain

FALLBACK_MESSAGE = "Using fallback data - website structure may have changed"
DISCONNECTED_MESSAGE = "Failed to scrape wind data, showing generated reading"


class TextFetcher(Protocol):
    def fetch(self) -> str:
        ...


def _local_now() -> datetime:
    return datetime.now(timezone.utc).astimezone()


class WindDataController:
    """Owns the in-memory history and status of every owner it has served.

    ``refresh`` never raises: fetch, parse and persistence failures all end in a
    valid (possibly synthetic) history plus a status describing what happened.
    At most one refresh per owner runs at a time; overlapping triggers are
    skipped rather than queued.
    """

    logger = get_logger(__name__)

    def __init__(
        self,
        fetcher: TextFetcher,
        chain: StrategyChain,
        repository: HistoryRepository,
        telemetry: Optional[TelemetryService] = None,
        *,
        tolerance_ms: int = DEFAULT_DUPLICATE_TOLERANCE_MS,
        retention_limit: int = DEFAULT_RETENTION_LIMIT,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.fetcher = fetcher
        self.chain = chain
        self.repository = repository
        self.telemetry = telemetry or TelemetryService()
        self.tolerance_ms = tolerance_ms
        self.retention_limit = retention_limit
        self._clock = clock

        self._histories: Dict[str, List[WindObservation]] = {}
        self._statuses: Dict[str, PipelineStatus] = {}
        self._owner_locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    def load_history(self, owner_id: str) -> List[WindObservation]:
        """Load the persisted history into memory (once) and return it."""
        with self._registry_lock:
            if owner_id in self._histories:
                return list(self._histories[owner_id])

        try:
            history = list(self.repository.load(owner_id))
        except Exception as exc:
            self.logger.error("Failed to load history for %s: %s", owner_id, exc)
            history = []

        status = PipelineStatus()
        if history:
            newest = max(record.timestamp_millis for record in history)
            status.last_update = datetime.fromtimestamp(newest / 1000, tz=timezone.utc).astimezone()
        with self._registry_lock:
            self._histories.setdefault(owner_id, history)
            self._statuses.setdefault(owner_id, status)
            return list(self._histories[owner_id])

    def get_history(self, owner_id: str) -> List[WindObservation]:
        return self.load_history(owner_id)

    def get_status(self, owner_id: str) -> PipelineStatus:
        self.load_history(owner_id)
        with self._registry_lock:
            return replace(self._statuses[owner_id])

    def get_summary(self, owner_id: str) -> HistorySummary:
        return summarize_history(self.get_history(owner_id))

    def get_direction_frequency(self, owner_id: str, window: int = 10) -> Dict[str, int]:
        return direction_frequency(self.get_history(owner_id), window=window)

    def export_csv(self, owner_id: str) -> str:
        return export_history_csv(self.get_history(owner_id))

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def refresh(self, owner_id: str) -> RefreshResult:
        """Run one pipeline pass for ``owner_id`` unless one is already in flight."""
        lock = self._lock_for(owner_id)
        if not lock.acquire(blocking=False):
            self.logger.info("Refresh for %s already in progress, skipping trigger", owner_id)
            self.telemetry.emit_event("pipeline.skipped", owner_id=owner_id)
            return RefreshResult(
                owner_id=owner_id,
                history=self.get_history(owner_id),
                status=self.get_status(owner_id),
                skipped=True,
            )
        try:
            return self._run(owner_id)
        finally:
            lock.release()

    def _lock_for(self, owner_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._owner_locks.setdefault(owner_id, threading.Lock())

    def _run(self, owner_id: str) -> RefreshResult:
        self.telemetry.emit_event("pipeline.start", owner_id=owner_id)
        history = self.load_history(owner_id)

        connected, outcome = self._collect(owner_id)
        if not connected:
            message = DISCONNECTED_MESSAGE
        elif outcome.is_synthetic:
            message = FALLBACK_MESSAGE
        else:
            message = f"Updated with {len(outcome.records)} new data points"

        merged = merge_history(
            history,
            outcome.records,
            tolerance_ms=self.tolerance_ms,
            limit=self.retention_limit,
        )
        persisted = self._persist(owner_id, merged)

        status = PipelineStatus(
            connected=connected,
            last_update=self._clock(),
            data_source=outcome.source,
            new_records=len(outcome.records),
            persisted=persisted,
            message=message,
        )
        with self._registry_lock:
            self._histories[owner_id] = merged
            self._statuses[owner_id] = status

        kind = "pipeline.success" if connected and not outcome.is_synthetic else "pipeline.degraded"
        self.telemetry.emit_event(
            kind,
            owner_id=owner_id,
            strategy=outcome.strategy,
            source=outcome.source.value,
            new_records=len(outcome.records),
            retained=len(merged),
            connected=connected,
        )
        self.logger.info(
            "Refresh for %s: strategy=%s new=%s retained=%s connected=%s persisted=%s",
            owner_id, outcome.strategy, len(outcome.records), len(merged), connected, persisted,
        )
        return RefreshResult(owner_id=owner_id, history=list(merged), status=replace(status))

    def _collect(self, owner_id: str) -> tuple[bool, ParseOutcome]:
        """Fetch and parse; returns (connected, outcome)."""
        try:
            text = self.fetcher.fetch()
        except (FetchError, RequestException) as exc:
            self.logger.warning("Failed to scrape wind data: %s", exc)
            self.telemetry.emit_event("pipeline.fetch_failed", owner_id=owner_id, error=str(exc))
            return False, self.chain.synthesize(owner_id)
        except Exception as exc:
            self.logger.exception("Unexpected error while fetching wind data: %s", exc)
            self.telemetry.emit_event("pipeline.fetch_failed", owner_id=owner_id, error=str(exc))
            return False, self.chain.synthesize(owner_id)

        outcome = self.chain.parse(text, owner_id)
        if outcome.source is DataSource.SYNTHETIC:
            self.logger.warning("%s (owner=%s)", FALLBACK_MESSAGE, owner_id)
            self.telemetry.emit_event("pipeline.fallback", owner_id=owner_id)
        return True, outcome

    def _persist(self, owner_id: str, records: List[WindObservation]) -> bool:
        try:
            saved = bool(self.repository.save(owner_id, records))
        except Exception as exc:
            self.logger.error("Failed to persist history for %s: %s", owner_id, exc)
            saved = False
        if not saved:
            self.telemetry.emit_event("pipeline.persist_failed", owner_id=owner_id)
        return saved
