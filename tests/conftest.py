"""Shared test fixtures."""

import json
import threading
from datetime import datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from weatherview import main
from weatherview.adapters.weather.weatherapi import parse_forecast_payload
from weatherview.domain.models import ForecastResult
from weatherview.settings import AppSettings, EnvSettings, WeatherViewYamlSettings

FIXTURE_DIR = Path(__file__).parent / "fixtures"
TIMEZONE = ZoneInfo("Asia/Kolkata")


class FakeWeatherAdapter:
    """Records requested locations and answers from a canned payload.

    ``release`` gates every call so tests can hold a request in flight.
    """

    def __init__(self, payload: dict[str, Any], error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.calls: list[str] = []
        self.release = threading.Event()
        self.release.set()

    def get_forecast(self, location: str) -> ForecastResult:
        self.calls.append(location)
        if not self.release.wait(timeout=5):
            raise TimeoutError("test adapter was never released")
        if self.error is not None:
            raise self.error
        return parse_forecast_payload({**self.payload, "location": {"name": location}})


@pytest.fixture
def delhi_payload() -> dict[str, Any]:
    with open(FIXTURE_DIR / "forecast_delhi.json") as f:
        return json.load(f)


@pytest.fixture
def delhi_forecast(delhi_payload: dict[str, Any]) -> ForecastResult:
    return parse_forecast_payload(delhi_payload)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 19, 15, 45, tzinfo=TIMEZONE)


@pytest.fixture
def fake_adapter(delhi_payload: dict[str, Any]) -> FakeWeatherAdapter:
    return FakeWeatherAdapter(delhi_payload)


@pytest.fixture
def app_settings(tmp_path: Path) -> AppSettings:
    yaml_settings = WeatherViewYamlSettings.model_validate(
        {
            "ui": {"title": "Weather", "default_theme": "light"},
            "location": {"default_city": "Delhi"},
            "weather": {"locale": "en_US", "base_url": "https://test-weather.example.com/v1"},
            "refresh": {"enabled": False},
        }
    )
    return AppSettings(
        env=EnvSettings(weather_api_key="test-key", weatherview_env="test"),
        yaml=yaml_settings,
        project_root=tmp_path,
        config_path=tmp_path / "weatherview.yaml",
        timezone=TIMEZONE,
    )


@pytest.fixture
def client(monkeypatch, app_settings: AppSettings, fake_adapter: FakeWeatherAdapter):
    monkeypatch.setattr(main, "load_settings", lambda: app_settings)
    monkeypatch.setattr(main, "build_weather_adapter", lambda settings: fake_adapter)
    with TestClient(main.app) as test_client:
        yield test_client
