import pytest

from wind_monitor.parser.field_parsers import (
    COMPASS_POINTS,
    DIRECTION_DEGREES,
    direction_to_degrees,
    parse_speed,
    parse_temperature,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("7 nodi", 7),
        ("12nodi", 12),
        ("  15   nodi ", 15),
        ("abc nodi", 0),
        ("", 0),
        ("7 knots", 0),
    ],
)
def test_parse_speed(text, expected):
    assert parse_speed(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("25°C", 25),
        ("30 °C", 30),
        ("-3°C", -3),
        ("garbage", 0),
        ("", 0),
    ],
)
def test_parse_temperature(text, expected):
    assert parse_temperature(text) == expected


@pytest.mark.parametrize(
    "direction, expected",
    [
        ("N", 0),
        ("NE", 45),
        ("ENE", 67),
        ("SSO", 202),
        ("SO", 225),
        ("NNO", 337),
        ("SW", 225),
        (" ene ", 67),
        ("XX", 0),
        ("", 0),
    ],
)
def test_direction_to_degrees(direction, expected):
    assert direction_to_degrees(direction) == expected


def test_compass_points_cover_sixteen_directions():
    assert len(COMPASS_POINTS) == 16
    assert len(set(COMPASS_POINTS)) == 16
    assert all(point in DIRECTION_DEGREES for point in COMPASS_POINTS)
    degrees = [DIRECTION_DEGREES[point] for point in COMPASS_POINTS]
    assert degrees == sorted(degrees)
