"""Token-level extractors for wind24.it text.

Every function here is total: malformed input yields the documented default,
never an exception.
"""

from __future__ import annotations

import re
from typing import Dict

KNOTS_TOKEN = "nodi"
CELSIUS_TOKEN = "°C"

SPEED_RE = re.compile(r"(\d+)\s*nodi")
TEMPERATURE_RE = re.compile(r"(-?\d+)\s*°\s*C")
DATE_RE = re.compile(r"(\d{2})/(\d{2})/(\d{4})")
TIME_RE = re.compile(r"(\d{2}):(\d{2})")

# primary set as rendered by the site (Italian: O = ovest)
COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE",
    "E", "ESE", "SE", "SSE",
    "S", "SSO", "SO", "OSO",
    "O", "ONO", "NO", "NNO",
)

DIRECTION_DEGREES: Dict[str, int] = {
    "N": 0, "NNE": 22, "NE": 45, "ENE": 67,
    "E": 90, "ESE": 112, "SE": 135, "SSE": 157,
    "S": 180, "SSO": 202, "SO": 225, "OSO": 247,
    "O": 270, "ONO": 292, "NO": 315, "NNO": 337,
    # English spellings of the west-derived points
    "SSW": 202, "SW": 225, "WSW": 247,
    "W": 270, "WNW": 292, "NW": 315, "NNW": 337,
}

# longest alternatives first so "NNE" is not read as "N"; uppercase-only
# boundaries because the site glues tokens ("9 nodiENE67")
_DIRECTION_ALTERNATION = "|".join(
    sorted(DIRECTION_DEGREES, key=lambda item: (-len(item), item))
)
DIRECTION_RE = re.compile(
    rf"(?<![A-Z])({_DIRECTION_ALTERNATION})(?![A-Z])"
    r"(?:\s*(\d{1,3})(?!\d|\s*°))?"
)


def parse_speed(text: str) -> int:
    """Return the integer in front of ``nodi`` (e.g. "7 nodi" -> 7), else 0."""
    if not text:
        return 0
    match = SPEED_RE.search(text)
    return int(match.group(1)) if match else 0


def parse_temperature(text: str) -> int:
    """Return the integer in front of ``°C`` (e.g. "25°C" -> 25), else 0."""
    if not text:
        return 0
    match = TEMPERATURE_RE.search(text)
    return int(match.group(1)) if match else 0


def direction_to_degrees(direction: str) -> int:
    """Map a compass abbreviation to degrees; unknown values map to 0."""
    if not direction:
        return 0
    return DIRECTION_DEGREES.get(direction.strip().upper(), 0)
