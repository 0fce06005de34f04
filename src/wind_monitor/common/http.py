"""Polite HTTP access to the scrape source.

One :class:`ThrottledClient` serves every fetch of a process: consecutive
requests are spaced out, transient failures are retried with capped
exponential backoff (or the server's ``Retry-After``), and every attempt is
reported as an ``http.*`` telemetry event.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional

import requests

from .telemetry import TelemetryService

# browser-like headers; the site serves an empty shell to unknown agents
DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/129.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;"
        "q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "it-IT,it;q=0.9,en-US;q=0.8,en;q=0.7",
    "Connection": "close",
}

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

RequestFunc = Callable[[str, Dict[str, str], int], requests.Response]


@dataclass(frozen=True)
class RetryPolicy:
    """Spacing between requests and backoff between attempts, in seconds."""

    min_delay: float
    step: float
    max_delay: float
    max_retries: int
    backoff_cap: float
    retryable_status: frozenset[int] = field(default_factory=lambda: RETRYABLE_STATUS)

    def spacing_for(self, request_index: int) -> float:
        """Wait before the ``request_index``-th request (0-based); the first is free."""
        if request_index <= 0:
            return 0.0
        return min(self.min_delay + self.step * (request_index - 1), self.max_delay)

    def backoff_for(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Wait after failed ``attempt`` (1-based); a server hint wins but is capped."""
        if retry_after is not None:
            return min(max(retry_after, 0.0), self.backoff_cap)
        return min(self.min_delay * (2 ** (attempt - 1)), self.backoff_cap)

    def should_retry(self, attempt: int) -> bool:
        return attempt < self.max_retries


def parse_retry_after(headers: Optional[Mapping[str, str]]) -> Optional[float]:
    """Seconds from a numeric ``Retry-After`` header; HTTP-date values are ignored."""
    if not headers:
        return None
    value = headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class ThrottledClient:
    """Shared GET client for the scrape source."""

    def __init__(
        self,
        default_headers: Optional[Dict[str, str]],
        retry_policy: RetryPolicy,
        telemetry: TelemetryService,
        *,
        request_timeout: int = 30,
        request_func: Optional[RequestFunc] = None,
        sleep_func: Optional[Callable[[float], None]] = None,
    ) -> None:
        self._headers = dict(default_headers or {})
        self._policy = retry_policy
        self._telemetry = telemetry
        self._timeout = request_timeout
        self._request = request_func or self._get
        self._sleep = sleep_func or time.sleep
        self._lock = threading.Lock()
        self._sent = 0

    @staticmethod
    def _get(url: str, headers: Dict[str, str], timeout: int) -> requests.Response:
        return requests.get(url, headers=headers, timeout=timeout)

    def _next_spacing(self) -> float:
        with self._lock:
            index = self._sent
            self._sent += 1
        return self._policy.spacing_for(index)

    def send(self, url: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """GET ``url``; raises the last ``requests`` error once retries are exhausted."""
        spacing = self._next_spacing()
        if spacing:
            self._sleep(spacing)

        request_headers = {**self._headers, **(headers or {})}
        last_error: Optional[requests.RequestException] = None
        for attempt in range(1, self._policy.max_retries + 1):
            self._telemetry.emit_event("http.start", url=url, attempt=attempt)
            try:
                response = self._request(url, request_headers, self._timeout)
            except requests.RequestException as exc:
                last_error = exc
                if self._policy.should_retry(attempt):
                    self._back_off(attempt, "exception", str(exc))
                continue

            status = response.status_code
            if status in self._policy.retryable_status and self._policy.should_retry(attempt):
                retry_after = parse_retry_after(getattr(response, "headers", None))
                self._back_off(attempt, "status", status, retry_after)
                continue

            try:
                response.raise_for_status()
            except requests.HTTPError as exc:
                self._telemetry.emit_event("http.failure", url=url, status=status, error=str(exc))
                raise

            self._telemetry.emit_event("http.success", url=url, status=status, attempt=attempt)
            return response

        self._telemetry.emit_event("http.failure", url=url, error=str(last_error))
        if last_error is not None:
            raise last_error
        raise requests.RequestException(f"HTTP request to {url} failed without response")

    def _back_off(
        self,
        attempt: int,
        reason: str,
        detail: object,
        retry_after: Optional[float] = None,
    ) -> None:
        delay = self._policy.backoff_for(attempt, retry_after)
        self._telemetry.emit_event(
            "http.retry", reason=reason, detail=detail, attempt=attempt, delay=delay,
        )
        self._sleep(delay)
