"""Dependency wiring.

Builds the controller and its collaborators from :class:`Settings` so the CLI
and the HTTP API share the same pipeline.
"""

from __future__ import annotations

import random
from typing import Optional

from wind_monitor.common.http import DEFAULT_HEADERS, RetryPolicy, ThrottledClient
from wind_monitor.common.telemetry import TelemetryService, log_sink
from wind_monitor.controller.wind_data_controller import TextFetcher, WindDataController
from wind_monitor.fetcher.fetcher import WindFetcher
from wind_monitor.infrastructure.repositories.data_interfaces import HistoryRepository
from wind_monitor.infrastructure.repositories.data_repository import JsonFileHistoryRepository
from wind_monitor.parser import build_default_chain
from wind_monitor.utils.config_loader import Settings, get_settings


def build_telemetry() -> TelemetryService:
    telemetry = TelemetryService()
    telemetry.add_sink(log_sink)
    return telemetry


def build_http_client(settings: Settings, telemetry: TelemetryService) -> ThrottledClient:
    policy = RetryPolicy(
        min_delay=settings.http.min_delay,
        step=settings.http.step,
        max_delay=settings.http.max_delay,
        max_retries=settings.http.max_retries,
        backoff_cap=settings.http.backoff_cap,
    )
    return ThrottledClient(
        default_headers=DEFAULT_HEADERS,
        retry_policy=policy,
        telemetry=telemetry,
        request_timeout=settings.http.timeout_seconds,
    )


def build_controller(
    settings: Optional[Settings] = None,
    *,
    fetcher: Optional[TextFetcher] = None,
    repository: Optional[HistoryRepository] = None,
    telemetry: Optional[TelemetryService] = None,
    rng: Optional[random.Random] = None,
) -> WindDataController:
    """Return a :class:`WindDataController`; any collaborator can be overridden."""

    settings = settings or get_settings()
    telemetry = telemetry or build_telemetry()
    if fetcher is None:
        fetcher = WindFetcher(build_http_client(settings, telemetry), settings.source_url)
    if repository is None:
        repository = JsonFileHistoryRepository(settings.history_dir)

    chain = build_default_chain(
        timezone_name=settings.timezone,
        rng=rng,
        max_line_candidates=settings.max_line_candidates,
        max_aggregate_candidates=settings.max_aggregate_candidates,
    )
    return WindDataController(
        fetcher=fetcher,
        chain=chain,
        repository=repository,
        telemetry=telemetry,
        tolerance_ms=settings.duplicate_tolerance_ms,
        retention_limit=settings.retention_limit,
    )
