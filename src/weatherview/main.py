from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .adapters.weather import WeatherApiForecastAdapter
from .controller import ForecastController
from .domain.models import FetchState, ForecastRow, ViewState
from .scheduler import build_scheduler
from .settings import AppSettings, load_settings
from .theme import (
    THEME_COOKIE_MAX_AGE_SECONDS,
    THEME_COOKIE_NAME,
    Theme,
    theme_from_cookie,
    toggle_icon,
    toggle_theme,
)
from .view_state import icon_glyph

LOGGER = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
WEB_DIR = BASE_DIR / "web"
TEMPLATES_DIR = WEB_DIR / "templates"
STATIC_DIR = WEB_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def build_weather_adapter(settings: AppSettings) -> WeatherApiForecastAdapter:
    provider = settings.yaml.weather.provider
    if provider != "weatherapi":
        raise ValueError(f"Unsupported weather provider: {provider}")
    return WeatherApiForecastAdapter(
        api_key=settings.api_key,
        base_url=settings.yaml.weather.base_url,
        timeout_seconds=settings.yaml.weather.timeout_seconds,
    )


def _get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _get_controller(request: Request) -> ForecastController:
    return request.app.state.controller


def _current_theme(request: Request, settings: AppSettings) -> Theme:
    default = Theme(settings.yaml.ui.default_theme)
    return theme_from_cookie(request.cookies.get(THEME_COOKIE_NAME), default)


def _format_measure(value: float | None) -> str:
    if value is None:
        return "--"
    return f"{value:g}"


def _build_forecast_rows(rows: list[ForecastRow]) -> list[dict[str, Any]]:
    return [
        {
            "day_label": row.slot.day_label,
            "date_label": row.slot.date_label,
            "time_label": row.slot.time_label,
            "icon_key": row.icon.value,
            "icon_glyph": icon_glyph(row.icon),
            "condition": row.condition_text,
            "max_temp_display": row.max_temp_display,
            "min_temp_display": row.min_temp_display,
        }
        for row in rows
    ]


def _build_forecast_context(state: ViewState) -> dict[str, Any]:
    context: dict[str, Any] = {
        "location_label": state.display_name,
        "is_loading": state.status.is_loading,
        "error_message": None,
        "forecast_available": False,
        "current": None,
        "forecast_rows": [],
    }

    if state.status.state == FetchState.FAILED:
        context["error_message"] = state.status.message
        return context

    derived = state.derived
    if state.status.state != FetchState.SUCCESS or derived is None:
        return context

    current = derived.current
    context["forecast_available"] = True
    context["current"] = {
        "icon_key": current.icon.value,
        "icon_glyph": icon_glyph(current.icon),
        "temp_display": current.temp_display,
        "condition": current.condition_text or "",
        "humidity_display": _format_measure(current.humidity),
        "wind_display": _format_measure(current.wind_kph),
        "sunrise": current.sunrise or "--",
    }
    context["forecast_rows"] = _build_forecast_rows(derived.rows)
    return context


def _build_page_context(request: Request) -> dict[str, Any]:
    settings = _get_settings(request)
    theme = _current_theme(request, settings)
    return {
        "title": settings.yaml.ui.title,
        "theme": theme.value,
        "theme_toggle_icon": toggle_icon(theme),
        **_build_forecast_context(_get_controller(request).state),
    }


@asynccontextmanager
async def lifespan(application: FastAPI):
    settings = load_settings()
    if not settings.api_key:
        LOGGER.warning("WEATHER_API_KEY is not set; forecast requests will be rejected")

    controller = ForecastController(
        build_weather_adapter(settings),
        default_location=settings.yaml.location.default_city,
        locale=settings.yaml.weather.locale,
        timezone=settings.timezone,
    )
    application.state.settings = settings
    application.state.controller = controller
    application.state.started_at_utc = datetime.now(timezone.utc)

    await controller.fetch(settings.yaml.location.default_city)

    scheduler = None
    if settings.yaml.refresh.enabled:
        scheduler = build_scheduler(settings, controller)
        scheduler.start()
    application.state.scheduler = scheduler

    try:
        yield
    finally:
        if scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Weatherview", version="0.1.0", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/", response_class=HTMLResponse)
async def forecast_page(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "index.html", _build_page_context(request))


@app.get("/search")
async def search(request: Request, city: str = "") -> RedirectResponse:
    await _get_controller(request).submit_location(city)
    return RedirectResponse("/", status_code=303)


@app.post("/theme")
async def switch_theme(request: Request) -> RedirectResponse:
    theme = toggle_theme(_current_theme(request, _get_settings(request)))
    response = RedirectResponse("/", status_code=303)
    response.set_cookie(
        THEME_COOKIE_NAME,
        theme.value,
        max_age=THEME_COOKIE_MAX_AGE_SECONDS,
        samesite="lax",
    )
    return response


@app.get("/partials/forecast", response_class=HTMLResponse)
async def partial_forecast(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "components/forecast.html",
        _build_forecast_context(_get_controller(request).state),
    )


@app.get("/api/forecast", response_class=JSONResponse)
async def forecast_state(request: Request) -> JSONResponse:
    return JSONResponse(_get_controller(request).state.model_dump(mode="json"))


@app.get("/health", response_class=JSONResponse)
async def health(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    state = _get_controller(request).state
    scheduler = request.app.state.scheduler
    return JSONResponse(
        {
            "status": "ok",
            "service": "weatherview",
            "environment": settings.env.weatherview_env,
            "timezone": settings.env.weatherview_timezone,
            "scheduler_running": bool(scheduler is not None and scheduler.running),
            "location": state.location,
            "fetch_state": state.status.state.value,
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
    )
