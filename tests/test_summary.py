import pytest

from wind_monitor.domain.services.summary import (
    WindBand,
    classify_wind_speed,
    direction_frequency,
    summarize_history,
)


@pytest.mark.parametrize(
    "speed, band",
    [(0, WindBand.LIGHT), (9, WindBand.LIGHT), (10, WindBand.IDEAL), (15, WindBand.IDEAL), (16, WindBand.STRONG)],
)
def test_classify_wind_speed(speed, band):
    assert classify_wind_speed(speed) is band


def test_summary_of_empty_history():
    summary = summarize_history([])

    assert summary.count == 0
    assert summary.latest is None
    assert summary.to_dict()["average_speed_knots"] is None


def test_summary_figures(make_observation):
    records = [
        make_observation(2_000, min_speed=5, avg_speed=7, gusts=12, temperature=30),
        make_observation(1_000, min_speed=3, avg_speed=9, gusts=14, temperature=25),
    ]

    summary = summarize_history(records)

    assert summary.count == 2
    assert summary.latest is records[0]
    assert summary.latest_band is WindBand.LIGHT
    assert summary.average_speed_knots == 8
    assert summary.max_gust_knots == 14
    assert summary.min_speed_knots == 3
    assert (summary.min_temperature_celsius, summary.max_temperature_celsius) == (25, 30)
    assert summary.average_temperature_celsius == 27.5
    assert summary.to_dict()["latest"]["timestampMillis"] == 2_000


def test_direction_frequency_uses_recent_window_in_compass_order(make_observation):
    directions = ["SO", "N", "SO", "ENE", "N", "E"]
    records = [make_observation(10_000 - i, direction=d) for i, d in enumerate(directions)]

    assert direction_frequency(records, window=5) == {"N": 2, "ENE": 1, "SO": 2}


def test_direction_frequency_keeps_unknown_directions_last(make_observation):
    records = [make_observation(2, direction="WSW"), make_observation(1, direction="N")]

    assert list(direction_frequency(records)) == ["N", "WSW"]
