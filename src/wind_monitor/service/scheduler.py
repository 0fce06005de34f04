"""Fixed-interval refresh loop."""

from __future__ import annotations

import threading
from typing import Callable, Iterable, List, Optional

from ..domain.models import RefreshResult
from ..logger.app_logger import get_logger

logger = get_logger(__name__)


class RefreshScheduler:
    """Call ``refresh(owner_id)`` for each owner every ``interval_seconds``.

    Runs on a daemon thread; ``stop()`` wakes the loop immediately. Overlap
    with manual refreshes is handled by the controller's per-owner guard.
    """

    def __init__(
        self,
        refresh: Callable[[str], RefreshResult],
        owner_ids: Iterable[str],
        interval_seconds: float = 60.0,
        *,
        run_immediately: bool = True,
        on_result: Optional[Callable[[RefreshResult], None]] = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._refresh = refresh
        self._owner_ids: List[str] = list(owner_ids)
        self._interval = interval_seconds
        self._run_immediately = run_immediately
        self._on_result = on_result
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="wind-refresh", daemon=True)
        self._thread.start()
        logger.info("Scheduler started: owners=%s interval=%ss", self._owner_ids, self._interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Scheduler stopped after %s ticks", self.ticks)

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the loop exits (e.g. on KeyboardInterrupt in the CLI)."""
        if self._thread is not None:
            self._thread.join(timeout)

    def run_once(self) -> List[RefreshResult]:
        results = []
        for owner_id in self._owner_ids:
            result = self._refresh(owner_id)
            results.append(result)
            if self._on_result:
                self._on_result(result)
        self.ticks += 1
        return results

    def _loop(self) -> None:
        if not self._run_immediately and self._stop_event.wait(self._interval):
            return
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception as exc:  # keep the timer alive
                logger.exception("Scheduled refresh failed: %s", exc)
            if self._stop_event.wait(self._interval):
                break
