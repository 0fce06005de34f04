"""Exception hierarchy for wind_monitor."""


class WindMonitorError(Exception):
    """Base class for errors raised by wind_monitor."""


class ConfigError(WindMonitorError):
    """Raised when configuration cannot be loaded."""


class FetchError(WindMonitorError):
    """Raised when the scrape source cannot be retrieved."""

    def __init__(self, url: str, message: str | None = None) -> None:
        self.url = url
        super().__init__(message or f"Failed to fetch {url}")
