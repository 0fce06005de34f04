"""Parsing strategies that turn scraped text into wind observations.

Strategies are ordered from most to least precise. Each one is a plain
callable ``(text, owner_id, context) -> list[WindObservation]`` with no shared
state, so the chain can stop at the first non-empty result.
"""

from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Callable, List, Optional, Protocol
from zoneinfo import ZoneInfo

from ..domain.models import WindObservation
from ..logger.app_logger import get_logger
from .field_parsers import (
    CELSIUS_TOKEN,
    COMPASS_POINTS,
    DATE_RE,
    DIRECTION_RE,
    KNOTS_TOKEN,
    SPEED_RE,
    TEMPERATURE_RE,
    TIME_RE,
    direction_to_degrees,
    parse_speed,
    parse_temperature,
)

logger = get_logger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ParseContext:
    """Environment shared by all strategies of one parse."""
    tz: tzinfo = field(default_factory=lambda: ZoneInfo("Europe/Rome"))
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], datetime] = _utc_now
    max_line_candidates: int = 60
    max_aggregate_candidates: int = 10


class ParseStrategy(Protocol):
    __name__: str

    def __call__(self, text: str, owner_id: str, context: ParseContext) -> List[WindObservation]:
        ...


def make_observation_id(timestamp_millis: int, rng: random.Random) -> str:
    suffix = "".join(rng.choice(_ID_ALPHABET) for _ in range(9))
    return f"wind_{timestamp_millis}_{suffix}"


def to_timestamp_millis(date_text: str, time_text: str, tz: tzinfo) -> Optional[int]:
    """Combine ``DD/MM/YYYY`` and ``HH:MM`` in ``tz``; None for impossible values."""
    try:
        day, month, year = (int(part) for part in date_text.split("/"))
        hour, minute = (int(part) for part in time_text.split(":"))
        moment = datetime(year, month, day, hour, minute, tzinfo=tz)
    except ValueError:
        return None
    return int(moment.timestamp() * 1000)


def _build_observation(
    context: ParseContext,
    owner_id: str,
    timestamp_millis: int,
    date_text: str,
    time_text: str,
    speeds: List[int],
    direction: str,
    degrees: int,
    temperature: int,
) -> WindObservation:
    return WindObservation(
        id=make_observation_id(timestamp_millis, context.rng),
        timestamp_millis=timestamp_millis,
        date=date_text,
        time=time_text,
        min_speed_knots=speeds[0],
        avg_speed_knots=speeds[1],
        gust_speed_knots=speeds[2],
        direction=direction,
        degrees=degrees,
        temperature_celsius=temperature,
        owner_id=owner_id,
    )


def _is_candidate_line(line: str) -> bool:
    return (
        KNOTS_TOKEN in line
        and CELSIUS_TOKEN in line
        and ("/" in line or ":" in line)
    )


def _direction_and_degrees(fragment: str) -> tuple[str, int]:
    match = DIRECTION_RE.search(fragment)
    if not match:
        return "N", 0
    direction = match.group(1)
    if match.group(2) is not None:
        degrees = int(match.group(2))
        if 0 <= degrees < 360:
            return direction, degrees
    return direction, direction_to_degrees(direction)


def parse_line(line: str, owner_id: str, context: ParseContext) -> Optional[WindObservation]:
    """Parse one rendered history row, or return None if a required token is missing.

    Rows look like ``17/07/2025 11:27 6 nodi 7 nodi 9 nodi ENE 67 30°C``; the
    site also glues date and time (``17/07/202511:276 nodi``), so each token is
    searched after the previous one.
    """
    date_match = DATE_RE.search(line)
    if not date_match:
        return None
    time_match = TIME_RE.search(line, date_match.end()) or TIME_RE.search(line)
    if not time_match:
        return None

    speeds_from = max(date_match.end(), time_match.end())
    speed_matches = list(SPEED_RE.finditer(line, speeds_from))
    if len(speed_matches) < 3:
        return None
    speeds = [parse_speed(match.group(0)) for match in speed_matches[:3]]

    rest = line[speed_matches[2].end():]
    temperature_match = TEMPERATURE_RE.search(rest) or TEMPERATURE_RE.search(line)
    if not temperature_match:
        return None
    temperature = parse_temperature(temperature_match.group(0))
    direction, degrees = _direction_and_degrees(rest)

    date_text = date_match.group(0)
    time_text = time_match.group(0)
    timestamp_millis = to_timestamp_millis(date_text, time_text, context.tz)
    if timestamp_millis is None:
        return None

    return _build_observation(
        context, owner_id, timestamp_millis, date_text, time_text,
        speeds, direction, degrees, temperature,
    )


def line_pattern_strategy(text: str, owner_id: str, context: ParseContext) -> List[WindObservation]:
    """One observation per qualifying line; unparseable lines are skipped."""
    records: List[WindObservation] = []
    for line in text.splitlines():
        if len(records) >= context.max_line_candidates:
            break
        if not _is_candidate_line(line):
            continue
        record = parse_line(line, owner_id, context)
        if record is None:
            logger.debug("Skipping unparseable line: %s", line[:120])
            continue
        records.append(record)
    return records


def aggregate_token_strategy(text: str, owner_id: str, context: ParseContext) -> List[WindObservation]:
    """Zip independently scanned token lists by position.

    Only meaningful when the line structure is lost; the alignment between
    token classes is assumed, not verified.
    """
    dates = [match.group(0) for match in DATE_RE.finditer(text)]
    times = [match.group(0) for match in TIME_RE.finditer(text)]
    speeds = [parse_speed(match.group(0)) for match in SPEED_RE.finditer(text)]
    temperatures = [parse_temperature(match.group(0)) for match in TEMPERATURE_RE.finditer(text)]
    directions = [match.group(1) for match in DIRECTION_RE.finditer(text)]

    if not (dates and times and speeds and temperatures and directions):
        return []

    records: List[WindObservation] = []
    count = min(context.max_aggregate_candidates, len(dates), len(times))
    for index in range(count):
        speed_slice = speeds[3 * index:3 * index + 3]
        if len(speed_slice) < 3:
            break
        timestamp_millis = to_timestamp_millis(dates[index], times[index], context.tz)
        if timestamp_millis is None:
            continue
        direction = directions[min(index, len(directions) - 1)]
        temperature = temperatures[min(index, len(temperatures) - 1)]
        records.append(
            _build_observation(
                context, owner_id, timestamp_millis, dates[index], times[index],
                speed_slice, direction, direction_to_degrees(direction), temperature,
            )
        )
    return records


class SyntheticObservationGenerator:
    """Produce plausible placeholder readings when nothing could be parsed."""

    AVG_SPEED_RANGE = (2, 13)
    MIN_DECREMENT_RANGE = (0, 2)
    GUST_INCREMENT_RANGE = (2, 9)
    TEMPERATURE_RANGE = (18, 29)

    def __init__(self, context: ParseContext) -> None:
        self._context = context

    def generate(self, owner_id: str, count: int = 1) -> List[WindObservation]:
        """Return ``count`` records (at least one), one minute apart, newest first."""
        rng = self._context.rng
        now = self._context.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        base_millis = int(now.timestamp() * 1000)

        records: List[WindObservation] = []
        for offset in range(max(1, count)):
            timestamp_millis = base_millis - offset * 60_000
            local = datetime.fromtimestamp(timestamp_millis / 1000, tz=self._context.tz)

            direction = rng.choice(COMPASS_POINTS)
            avg = rng.randint(*self.AVG_SPEED_RANGE)
            minimum = max(0, avg - rng.randint(*self.MIN_DECREMENT_RANGE))
            gusts = avg + rng.randint(*self.GUST_INCREMENT_RANGE)
            temperature = rng.randint(*self.TEMPERATURE_RANGE)

            records.append(
                _build_observation(
                    self._context, owner_id, timestamp_millis,
                    local.strftime("%d/%m/%Y"), local.strftime("%H:%M"),
                    [minimum, avg, gusts], direction, direction_to_degrees(direction), temperature,
                )
            )
        return records

