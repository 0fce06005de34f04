"""Derived figures for the dashboard: current band, aggregates, direction pattern."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from ..models import WindObservation
from ...parser.field_parsers import COMPASS_POINTS


class WindBand(Enum):
    """Average-speed bands used to colour the current reading."""
    LIGHT = "light"      # < 10 knots
    IDEAL = "ideal"      # 10-15 knots
    STRONG = "strong"    # > 15 knots


def classify_wind_speed(avg_speed_knots: int) -> WindBand:
    if avg_speed_knots < 10:
        return WindBand.LIGHT
    if avg_speed_knots <= 15:
        return WindBand.IDEAL
    return WindBand.STRONG


@dataclass(frozen=True)
class HistorySummary:
    count: int
    latest: Optional[WindObservation] = None
    latest_band: Optional[WindBand] = None
    average_speed_knots: Optional[int] = None
    max_gust_knots: Optional[int] = None
    min_speed_knots: Optional[int] = None
    min_temperature_celsius: Optional[int] = None
    max_temperature_celsius: Optional[int] = None
    average_temperature_celsius: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "latest": self.latest.to_dict() if self.latest else None,
            "latest_band": self.latest_band.value if self.latest_band else None,
            "average_speed_knots": self.average_speed_knots,
            "max_gust_knots": self.max_gust_knots,
            "min_speed_knots": self.min_speed_knots,
            "min_temperature_celsius": self.min_temperature_celsius,
            "max_temperature_celsius": self.max_temperature_celsius,
            "average_temperature_celsius": self.average_temperature_celsius,
        }


def summarize_history(records: Sequence[WindObservation]) -> HistorySummary:
    """Aggregate a newest-first history; an empty history gives count 0 and no figures."""
    if not records:
        return HistorySummary(count=0)

    latest = records[0]
    temperatures = [record.temperature_celsius for record in records]
    return HistorySummary(
        count=len(records),
        latest=latest,
        latest_band=classify_wind_speed(latest.avg_speed_knots),
        average_speed_knots=round(sum(r.avg_speed_knots for r in records) / len(records)),
        max_gust_knots=max(r.gust_speed_knots for r in records),
        min_speed_knots=min(r.min_speed_knots for r in records),
        min_temperature_celsius=min(temperatures),
        max_temperature_celsius=max(temperatures),
        average_temperature_celsius=round(sum(temperatures) / len(temperatures), 1),
    )


def direction_frequency(records: Sequence[WindObservation], window: int = 10) -> Dict[str, int]:
    """Count directions among the ``window`` most recent readings.

    Keys follow compass order; directions outside the primary set come last.
    """
    counts = Counter(record.direction for record in records[:max(window, 0)])
    ordered = {point: counts[point] for point in COMPASS_POINTS if counts[point]}
    for direction, count in counts.items():
        if direction not in ordered:
            ordered[direction] = count
    return ordered
