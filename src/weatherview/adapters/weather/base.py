from __future__ import annotations

from typing import Protocol

from ...domain.models import ForecastResult

GENERIC_TRANSPORT_MESSAGE = "An unknown network error occurred."
BODY_EXCERPT_LENGTH = 50


class WeatherAdapterError(RuntimeError):
    """Raised when a weather provider request cannot be completed."""


class ForecastHttpError(WeatherAdapterError):
    """The provider answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body_excerpt = body[:BODY_EXCERPT_LENGTH]
        super().__init__(f"HTTP error {status_code}: {self.body_excerpt}...")


class ForecastTransportError(WeatherAdapterError):
    """The request never completed or the response body was unusable."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or GENERIC_TRANSPORT_MESSAGE)


class WeatherAdapter(Protocol):
    def get_forecast(self, location: str) -> ForecastResult:
        """Fetch the seven-day forecast for a free-text location."""
