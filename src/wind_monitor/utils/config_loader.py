"""Configuration loading utilities."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from ..logger.app_logger import get_logger
from .path_utils import resolve_path


logger = get_logger(__name__)

DEFAULT_SOURCE_URL = "https://www.wind24.it/cattolica/history"
DEFAULT_TIMEZONE = "Europe/Rome"


@dataclass(frozen=True)
class HttpSettings:
    min_delay: float = 1.0
    step: float = 0.2
    max_delay: float = 2.0
    max_retries: int = 3
    backoff_cap: float = 10.0
    timeout_seconds: int = 30


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings for the ingestion pipeline."""

    source_url: str = DEFAULT_SOURCE_URL
    timezone: str = DEFAULT_TIMEZONE
    refresh_interval_seconds: float = 60.0
    retention_limit: int = 60
    duplicate_tolerance_ms: int = 30_000
    max_line_candidates: int = 60
    max_aggregate_candidates: int = 10
    history_dir: Path = Path("outputs/wind/history")
    csv_dir: Path = Path("outputs/wind/csv")
    http: HttpSettings = HttpSettings()


def get_default_config_path() -> Path:
    """Return the canonical config file location."""

    return Path(__file__).parent.parent / "config.yml"


def load_config(config_path: str | Path | None = None) -> Dict[str, Any]:
    """Load configuration data, tolerating missing files."""

    if config_path is None:
        config_path = get_default_config_path()
    else:
        config_path = Path(config_path)

    try:
        with config_path.open("r", encoding="utf-8") as file:
            config = yaml.safe_load(file) or {}
        logger.info("Loaded config file: %s", config_path)
        return config
    except FileNotFoundError:
        logger.warning("Config file not found, using defaults: %s", config_path)
        return {}
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config file: %s", exc)
        raise


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = config.get(name) or {}
    return value if isinstance(value, dict) else {}


def get_settings(config: Dict[str, Any] | None = None) -> Settings:
    """Build :class:`Settings` from a raw config mapping."""

    if config is None:
        config = load_config()
    if not isinstance(config, dict):
        config = {}

    defaults = Settings()
    source = _section(config, "source")
    pipeline = _section(config, "pipeline")
    storage = _section(config, "storage")
    output = _section(config, "output")
    http = _section(config, "http")

    http_defaults = HttpSettings()
    http_settings = HttpSettings(
        min_delay=float(http.get("min_delay", http_defaults.min_delay)),
        step=float(http.get("step", http_defaults.step)),
        max_delay=float(http.get("max_delay", http_defaults.max_delay)),
        max_retries=int(http.get("max_retries", http_defaults.max_retries)),
        backoff_cap=float(http.get("backoff_cap", http_defaults.backoff_cap)),
        timeout_seconds=int(source.get("timeout_seconds", http_defaults.timeout_seconds)),
    )

    return Settings(
        source_url=str(source.get("url", defaults.source_url)),
        timezone=str(source.get("timezone", defaults.timezone)),
        refresh_interval_seconds=float(
            pipeline.get("refresh_interval_seconds", defaults.refresh_interval_seconds)
        ),
        retention_limit=int(pipeline.get("retention_limit", defaults.retention_limit)),
        duplicate_tolerance_ms=int(
            pipeline.get("duplicate_tolerance_ms", defaults.duplicate_tolerance_ms)
        ),
        max_line_candidates=int(pipeline.get("max_line_candidates", defaults.max_line_candidates)),
        max_aggregate_candidates=int(
            pipeline.get("max_aggregate_candidates", defaults.max_aggregate_candidates)
        ),
        history_dir=resolve_path(storage.get("history_dir", defaults.history_dir)),
        csv_dir=resolve_path(output.get("csv_dir", defaults.csv_dir)),
        http=http_settings,
    )
