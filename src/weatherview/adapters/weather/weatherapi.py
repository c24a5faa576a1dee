from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from ...domain.models import (
    MAX_FORECAST_DAYS,
    CurrentConditions,
    DailyForecast,
    ForecastResult,
)
from .base import ForecastHttpError, ForecastTransportError

LOGGER = logging.getLogger(__name__)

WEATHERAPI_BASE_URL = "https://api.weatherapi.com/v1"
DEFAULT_TIMEOUT_SECONDS = 10
USER_AGENT = "weatherview/0.1"


def _coerce_optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _coerce_optional_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def _coerce_optional_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _condition_text(container: dict[str, Any]) -> str | None:
    return _coerce_optional_text(_mapping(container.get("condition")).get("text"))


def _read_error_body(exc: HTTPError) -> str:
    try:
        return exc.read().decode("utf-8", errors="replace")
    except (OSError, AttributeError):
        return ""


def _transport_message(exc: BaseException) -> str | None:
    if isinstance(exc, URLError) and exc.reason:
        return str(exc.reason)
    text = str(exc).strip()
    return text or None


def _fetch_json(url: str, *, timeout: float) -> dict[str, Any]:
    request = Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urlopen(request, timeout=timeout) as response:
            payload = json.loads(response.read().decode("utf-8"))
    except HTTPError as exc:
        raise ForecastHttpError(exc.code, _read_error_body(exc)) from exc
    except (URLError, TimeoutError, OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ForecastTransportError(_transport_message(exc)) from exc

    if not isinstance(payload, dict):
        raise ForecastTransportError("Unexpected forecast response shape")
    return payload


def parse_forecast_payload(payload: dict[str, Any]) -> ForecastResult:
    """Map a weatherapi.com forecast body onto a ``ForecastResult``.

    Missing or malformed fields become ``None`` instead of failing, so a partial
    payload still renders.
    """
    location = _mapping(payload.get("location"))
    current = _mapping(payload.get("current"))
    forecast_days = _mapping(payload.get("forecast")).get("forecastday")
    if not isinstance(forecast_days, list):
        forecast_days = []

    days: list[DailyForecast] = []
    for item in forecast_days[:MAX_FORECAST_DAYS]:
        entry = _mapping(item)
        day = _mapping(entry.get("day"))
        astro = _mapping(entry.get("astro"))
        days.append(
            DailyForecast(
                forecast_date=_coerce_optional_date(entry.get("date")),
                max_temp_c=_coerce_optional_float(day.get("maxtemp_c")),
                min_temp_c=_coerce_optional_float(day.get("mintemp_c")),
                condition_text=_condition_text(day),
                sunrise=_coerce_optional_text(astro.get("sunrise")),
            )
        )

    return ForecastResult(
        location_name=_coerce_optional_text(location.get("name")),
        current=CurrentConditions(
            temp_c=_coerce_optional_float(current.get("temp_c")),
            humidity=_coerce_optional_float(current.get("humidity")),
            wind_kph=_coerce_optional_float(current.get("wind_kph")),
            condition_text=_condition_text(current),
        ),
        days=days,
    )


class WeatherApiForecastAdapter:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = WEATHERAPI_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    def build_url(self, location: str) -> str:
        params = {
            "key": self._api_key,
            "q": location,
            "days": str(MAX_FORECAST_DAYS),
            "aqi": "no",
            "alerts": "no",
        }
        return f"{self._base_url}/forecast.json?{urlencode(params)}"

    def get_forecast(self, location: str) -> ForecastResult:
        LOGGER.debug("Requesting %s-day forecast for '%s'", MAX_FORECAST_DAYS, location)
        payload = _fetch_json(self.build_url(location), timeout=self._timeout_seconds)
        return parse_forecast_payload(payload)
