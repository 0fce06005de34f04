"""
Domain models for wind observations.

A :class:`WindObservation` is immutable once built. Retained histories are
plain lists of observations ordered newest first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class DataSource(Enum):
    """Where the records of a pipeline run came from."""
    LIVE = "live"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class WindObservation:
    """One wind reading for one owner.

    ``date`` and ``time`` keep the source's ``DD/MM/YYYY`` and ``HH:MM`` text;
    ``timestamp_millis`` is the identity used for dedup and ordering. No range
    or ordering checks are applied to the measurements.
    """
    id: str
    timestamp_millis: int
    date: str
    time: str
    min_speed_knots: int
    avg_speed_knots: int
    gust_speed_knots: int
    direction: str
    degrees: int
    temperature_celsius: int
    owner_id: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the persisted field names."""
        return {
            "id": self.id,
            "timestampMillis": self.timestamp_millis,
            "date": self.date,
            "time": self.time,
            "minSpeedKnots": self.min_speed_knots,
            "avgSpeedKnots": self.avg_speed_knots,
            "gustSpeedKnots": self.gust_speed_knots,
            "direction": self.direction,
            "degrees": self.degrees,
            "temperatureCelsius": self.temperature_celsius,
            "ownerId": self.owner_id,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "WindObservation":
        """Rebuild an observation from :meth:`to_dict` output.

        Missing numeric fields default to 0 and missing strings to ``""``.
        """
        def _int(key: str) -> int:
            value = payload.get(key)
            if value is None or value == "":
                return 0
            return int(value)

        def _str(key: str) -> str:
            value = payload.get(key)
            return "" if value is None else str(value)

        return cls(
            id=_str("id"),
            timestamp_millis=_int("timestampMillis"),
            date=_str("date"),
            time=_str("time"),
            min_speed_knots=_int("minSpeedKnots"),
            avg_speed_knots=_int("avgSpeedKnots"),
            gust_speed_knots=_int("gustSpeedKnots"),
            direction=_str("direction"),
            degrees=_int("degrees"),
            temperature_celsius=_int("temperatureCelsius"),
            owner_id=_str("ownerId"),
        )


@dataclass(frozen=True)
class ParseOutcome:
    """Result of running the strategy chain over one scraped text."""
    records: List[WindObservation]
    strategy: str
    source: DataSource

    @property
    def is_synthetic(self) -> bool:
        return self.source is DataSource.SYNTHETIC


@dataclass
class PipelineStatus:
    """Status signal handed to the presentation layer after each run."""
    connected: bool = True
    last_update: Optional[datetime] = None
    data_source: Optional[DataSource] = None
    new_records: int = 0
    persisted: bool = True
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connected": self.connected,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "data_source": self.data_source.value if self.data_source else None,
            "new_records": self.new_records,
            "persisted": self.persisted,
            "message": self.message,
        }


@dataclass
class RefreshResult:
    """What one trigger of the pipeline produced."""
    owner_id: str
    history: List[WindObservation] = field(default_factory=list)
    status: PipelineStatus = field(default_factory=PipelineStatus)
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "skipped": self.skipped,
            "status": self.status.to_dict(),
            "history": [record.to_dict() for record in self.history],
        }
