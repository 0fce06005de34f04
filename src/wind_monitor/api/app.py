"""HTTP API for the wind pipeline, served with FastAPI.

Exposes the retained history, the last run status, derived summaries and the
CSV export per owner, plus a manual refresh trigger. Every JSON response uses
the ``{status, message, data, timestamp}`` envelope.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Any, Iterable, List, Optional

from fastapi import FastAPI, Path, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from wind_monitor.controller.wind_data_controller import WindDataController
from wind_monitor.exporter.csv_exporter import export_filename, export_history_csv
from wind_monitor.logger.app_logger import get_logger
from wind_monitor.service.scheduler import RefreshScheduler
from wind_monitor.version import __version__, get_app_info

logger = get_logger(__name__)

DEFAULT_ALLOW_ORIGINS: Iterable[str] = ("*",)
OWNER_PATTERN = r"^[0-9A-Za-z_.@-]{1,128}$"

OwnerId = Annotated[str, Path(pattern=OWNER_PATTERN, description="Owner whose history is addressed.")]


class ObservationModel(BaseModel):
    """One retained reading, serialized with the persisted field names."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    timestamp_millis: int = Field(..., validation_alias=AliasChoices("timestampMillis", "timestamp_millis"),
                                  serialization_alias="timestampMillis")
    date: str
    time: str
    min_speed_knots: int = Field(..., validation_alias=AliasChoices("minSpeedKnots", "min_speed_knots"),
                                 serialization_alias="minSpeedKnots")
    avg_speed_knots: int = Field(..., validation_alias=AliasChoices("avgSpeedKnots", "avg_speed_knots"),
                                 serialization_alias="avgSpeedKnots")
    gust_speed_knots: int = Field(..., validation_alias=AliasChoices("gustSpeedKnots", "gust_speed_knots"),
                                  serialization_alias="gustSpeedKnots")
    direction: str
    degrees: int
    temperature_celsius: int = Field(..., validation_alias=AliasChoices("temperatureCelsius", "temperature_celsius"),
                                     serialization_alias="temperatureCelsius")
    owner_id: str = Field(..., validation_alias=AliasChoices("ownerId", "owner_id"),
                          serialization_alias="ownerId")


class StatusModel(BaseModel):
    connected: bool
    last_update: Optional[datetime] = None
    data_source: Optional[str] = None
    new_records: int = 0
    persisted: bool = True
    message: str = ""


def _envelope(data: Any, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    payload = {
        "status": "success" if status_code < 400 else "error",
        "message": message,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(status_code=status_code, content=payload)


def _serialize_history(records) -> List[dict]:
    return [
        ObservationModel.model_validate(record.to_dict()).model_dump(by_alias=True)
        for record in records
    ]


def _serialize_status(status) -> dict:
    return StatusModel.model_validate(status.to_dict()).model_dump(mode="json")


def create_app(
    controller: Optional[WindDataController] = None,
    *,
    allow_origins: Optional[Iterable[str]] = None,
    watch_owners: Iterable[str] = (),
    refresh_interval_seconds: float = 60.0,
) -> FastAPI:
    """Build the FastAPI application.

    ``watch_owners`` enables the fixed-interval refresh loop for those owners
    for the lifetime of the app.
    """

    if controller is None:
        from wind_monitor.app_container import build_controller

        controller = build_controller()

    owners = list(watch_owners)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        scheduler = None
        if owners:
            scheduler = RefreshScheduler(controller.refresh, owners, refresh_interval_seconds)
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop(timeout=5)

    app = FastAPI(
        title="Wind Monitor API",
        version=__version__,
        description="Rolling wind history scraped from wind24.it.",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(allow_origins or DEFAULT_ALLOW_ORIGINS),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    @app.get("/api/health", tags=["system"])
    def health_check() -> JSONResponse:
        return _envelope(get_app_info(), message="ok")

    @app.get("/api/owners/{owner_id}/history", tags=["wind"])
    def get_history(
        owner_id: OwnerId,
        limit: Optional[int] = Query(None, ge=1, le=60),
    ) -> JSONResponse:
        records = controller.get_history(owner_id)
        if limit is not None:
            records = records[:limit]
        return _envelope(_serialize_history(records))

    @app.post("/api/owners/{owner_id}/refresh", tags=["wind"])
    def refresh(owner_id: OwnerId) -> JSONResponse:
        result = controller.refresh(owner_id)
        message = "refresh already in progress" if result.skipped else result.status.message
        return _envelope(
            {
                "skipped": result.skipped,
                "status": _serialize_status(result.status),
                "history": _serialize_history(result.history),
            },
            message=message,
            status_code=202 if result.skipped else 200,
        )

    @app.get("/api/owners/{owner_id}/status", tags=["wind"])
    def get_status(owner_id: OwnerId) -> JSONResponse:
        return _envelope(_serialize_status(controller.get_status(owner_id)))

    @app.get("/api/owners/{owner_id}/summary", tags=["wind"])
    def get_summary(
        owner_id: OwnerId,
        window: int = Query(10, ge=1, le=60),
    ) -> JSONResponse:
        summary = controller.get_summary(owner_id).to_dict()
        summary["direction_frequency"] = controller.get_direction_frequency(owner_id, window=window)
        return _envelope(summary)

    @app.get("/api/owners/{owner_id}/export", tags=["wind"])
    def export_csv(owner_id: OwnerId) -> Response:
        content = export_history_csv(controller.get_history(owner_id))
        return Response(
            content=content,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
        )

    return app


if __name__ == "__main__":  # pragma: no cover - manual entry point
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
