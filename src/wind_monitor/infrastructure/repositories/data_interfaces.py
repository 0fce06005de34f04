"""
Persistence interface for retained histories.

The pipeline only needs two operations, both keyed by owner: load the
previous history and replace it with a new one.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from wind_monitor.domain.models import WindObservation


class HistoryRepository(ABC):
    """Key-value store of newest-first observation lists, one per owner."""

    @abstractmethod
    def load(self, owner_id: str) -> List[WindObservation]:
        """Return the stored history, or an empty list when there is none."""
        pass

    @abstractmethod
    def save(self, owner_id: str, records: Sequence[WindObservation]) -> bool:
        """Replace the stored history; return False instead of raising on failure."""
        pass
