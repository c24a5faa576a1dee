from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from babel import Locale, UnknownLocaleError
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class UiSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = "Weather"
    default_theme: Literal["light", "dark"] = "light"


class LocationSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    default_city: str = "Delhi"

    @field_validator("default_city")
    @classmethod
    def validate_default_city(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("location.default_city must not be empty")
        return text


class WeatherSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    provider: Literal["weatherapi"] = "weatherapi"
    base_url: str = "https://api.weatherapi.com/v1"
    locale: str = "en_IN"
    timeout_seconds: float = Field(default=10, gt=0, le=120)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        text = value.strip().rstrip("/")
        parsed = urlparse(text)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("weather.base_url must be an absolute http(s) URL")
        return text

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, value: str) -> str:
        text = value.strip().replace("-", "_")
        try:
            Locale.parse(text)
        except (UnknownLocaleError, ValueError) as exc:
            raise ValueError(f"Unknown locale: {value}") from exc
        return text


class RefreshSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    interval_minutes: int = Field(default=30, ge=1, le=720)
    jitter_seconds: int = Field(default=15, ge=0, le=300)


class WeatherViewYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ui: UiSettings = Field(default_factory=UiSettings)
    location: LocationSettings = Field(default_factory=LocationSettings)
    weather: WeatherSettings = Field(default_factory=WeatherSettings)
    refresh: RefreshSettings = Field(default_factory=RefreshSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    weather_api_key: SecretStr = SecretStr("")
    weatherview_env: Literal["dev", "test", "prod"] = "dev"
    weatherview_timezone: str = "Asia/Kolkata"
    weatherview_config_path: Path = Path("config/weatherview.yaml")

    @field_validator("weatherview_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value


class AppSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    env: EnvSettings
    yaml: WeatherViewYamlSettings
    project_root: Path
    config_path: Path
    timezone: ZoneInfo

    @property
    def api_key(self) -> str:
        return self.env.weather_api_key.get_secret_value()


def _resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def _load_yaml_settings(path: Path) -> WeatherViewYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Weatherview config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Weatherview config must be a YAML mapping/object at the top level")
    return WeatherViewYamlSettings.model_validate(raw_config)


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    env = EnvSettings()
    config_path = _resolve_project_path(env.weatherview_config_path)
    yaml_settings = _load_yaml_settings(config_path)
    return AppSettings(
        env=env,
        yaml=yaml_settings,
        project_root=PROJECT_ROOT,
        config_path=config_path,
        timezone=ZoneInfo(env.weatherview_timezone),
    )
