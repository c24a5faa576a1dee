from __future__ import annotations

import math
import re
from datetime import datetime, timedelta
from typing import Any

from babel.dates import format_date, format_skeleton, format_time

from .domain.models import (
    CalendarSlot,
    ConditionIcon,
    CurrentView,
    DailyForecast,
    DerivedViewState,
    ForecastResult,
    ForecastRow,
)

CALENDAR_SLOT_COUNT = 7
DEFAULT_CONDITION_TEXT = "Clear"
TEMP_PLACEHOLDER = "--"

ICON_GLYPHS = {
    ConditionIcon.CLEAR: "☀",
    ConditionIcon.PARTLY_CLOUDY: "⛅",
    ConditionIcon.CLOUDY: "☁",
    ConditionIcon.RAIN: "\U0001f327",
    ConditionIcon.SNOW: "❄",
    ConditionIcon.SHOWERS: "\U0001f326",
    ConditionIcon.SUNNY: "☀",
}

_WHITESPACE_RUN = re.compile(r"\s+")


def format_temp(value: Any) -> int | str:
    """Round a temperature half up to a whole degree, or return ``"--"``."""
    if value is None or isinstance(value, bool):
        return TEMP_PLACEHOLDER
    try:
        number = float(value)
    except (TypeError, ValueError):
        return TEMP_PLACEHOLDER
    if not math.isfinite(number):
        return TEMP_PLACEHOLDER
    return math.floor(number + 0.5)


def normalize_condition_key(text: str | None) -> str:
    """Lowercase condition text and join words with ``_``; surrounding whitespace is dropped first."""
    source = (text or "").strip() or DEFAULT_CONDITION_TEXT
    return _WHITESPACE_RUN.sub("_", source.lower())


def resolve_condition_icon(text: str | None) -> ConditionIcon:
    try:
        return ConditionIcon(normalize_condition_key(text))
    except ValueError:
        return ConditionIcon.CLEAR


def icon_glyph(icon: ConditionIcon) -> str:
    return ICON_GLYPHS.get(icon, ICON_GLYPHS[ConditionIcon.CLEAR])


def build_calendar_slots(now: datetime, locale: str) -> list[CalendarSlot]:
    # One time label for every slot: it marks when the window was generated.
    time_label = format_time(now, "hh:mm a", locale=locale)
    today = now.date()

    slots: list[CalendarSlot] = []
    for offset in range(CALENDAR_SLOT_COUNT):
        slot_date = today + timedelta(days=offset)
        slots.append(
            CalendarSlot(
                date=slot_date,
                day_label=format_date(slot_date, "EEE", locale=locale),
                date_label=format_skeleton("MMMd", slot_date, locale=locale),
                time_label=time_label,
            )
        )
    return slots


def _build_current_view(result: ForecastResult) -> CurrentView:
    current = result.current
    return CurrentView(
        icon=resolve_condition_icon(current.condition_text),
        temp_display=format_temp(current.temp_c),
        condition_text=current.condition_text,
        humidity=current.humidity,
        wind_kph=current.wind_kph,
        sunrise=result.sunrise,
    )


def _build_row(slot: CalendarSlot, day: DailyForecast | None) -> ForecastRow:
    if day is None:
        return ForecastRow(slot=slot)
    text = day.condition_text or DEFAULT_CONDITION_TEXT
    return ForecastRow(
        slot=slot,
        icon=resolve_condition_icon(text),
        condition_text=text,
        max_temp_display=format_temp(day.max_temp_c),
        min_temp_display=format_temp(day.min_temp_c),
    )


def derive_view_state(result: ForecastResult, locale: str, now: datetime) -> DerivedViewState:
    slots = build_calendar_slots(now, locale)
    rows = [
        _build_row(slot, result.days[index] if index < len(result.days) else None)
        for index, slot in enumerate(slots)
    ]
    return DerivedViewState(
        calendar_slots=slots,
        current=_build_current_view(result),
        rows=rows,
    )
