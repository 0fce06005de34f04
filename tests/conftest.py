import random
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from wind_monitor.controller.wind_data_controller import WindDataController
from wind_monitor.domain.models import WindObservation
from wind_monitor.infrastructure.repositories.data_repository import InMemoryHistoryRepository
from wind_monitor.parser import build_default_chain
from wind_monitor.parser.strategies import ParseContext
from wind_monitor.common.telemetry import TelemetryService


FIXED_NOW = datetime(2025, 7, 17, 9, 30, tzinfo=timezone.utc)


class StubFetcher:
    """Returns a fixed text, or raises the configured exception."""

    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls = 0

    def fetch(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture()
def fixed_now():
    return FIXED_NOW


@pytest.fixture()
def parse_context():
    return ParseContext(
        tz=ZoneInfo("Europe/Rome"),
        rng=random.Random(42),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture()
def make_observation():
    def _factory(
        timestamp_millis: int,
        *,
        id: str | None = None,
        owner_id: str = "alice",
        min_speed: int = 5,
        avg_speed: int = 7,
        gusts: int = 9,
        direction: str = "ENE",
        degrees: int = 67,
        temperature: int = 30,
    ) -> WindObservation:
        return WindObservation(
            id=id or f"wind_{timestamp_millis}_test",
            timestamp_millis=timestamp_millis,
            date="17/07/2025",
            time="11:27",
            min_speed_knots=min_speed,
            avg_speed_knots=avg_speed,
            gust_speed_knots=gusts,
            direction=direction,
            degrees=degrees,
            temperature_celsius=temperature,
            owner_id=owner_id,
        )
    return _factory


@pytest.fixture()
def stub_fetcher_factory():
    return StubFetcher


@pytest.fixture()
def telemetry_events():
    return []


@pytest.fixture()
def build_controller(telemetry_events):
    def _factory(fetcher, repository=None, **kwargs):
        telemetry = TelemetryService()
        telemetry.add_sink(telemetry_events.append)
        chain = build_default_chain(rng=random.Random(3), clock=lambda: FIXED_NOW)
        return WindDataController(
            fetcher=fetcher,
            chain=chain,
            repository=repository if repository is not None else InMemoryHistoryRepository(),
            telemetry=telemetry,
            clock=lambda: FIXED_NOW,
            **kwargs,
        )
    return _factory
