from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_FORECAST_DAYS = 7


class ConditionIcon(str, Enum):
    """Display icon categories keyed by normalized condition text."""

    CLEAR = "clear"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    RAIN = "rain"
    SNOW = "snow"
    SHOWERS = "showers"
    SUNNY = "sunny"


class CurrentConditions(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    temp_c: float | None = None
    humidity: float | None = None
    wind_kph: float | None = None
    condition_text: str | None = None


class DailyForecast(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    forecast_date: date | None = None
    max_temp_c: float | None = None
    min_temp_c: float | None = None
    condition_text: str | None = None
    sunrise: str | None = None


class ForecastResult(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    location_name: str | None = None
    current: CurrentConditions = Field(default_factory=CurrentConditions)
    days: list[DailyForecast] = Field(default_factory=list)

    @field_validator("days")
    @classmethod
    def validate_days(cls, values: list[DailyForecast]) -> list[DailyForecast]:
        return values[:MAX_FORECAST_DAYS]

    @property
    def sunrise(self) -> str | None:
        if not self.days:
            return None
        return self.days[0].sunrise


class FetchState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


class FetchStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: FetchState = FetchState.IDLE
    result: ForecastResult | None = None
    message: str | None = None

    @model_validator(mode="after")
    def validate_state_payload(self) -> FetchStatus:
        if self.state == FetchState.SUCCESS:
            if self.result is None:
                raise ValueError("successful fetch status must carry a forecast result")
        elif self.result is not None:
            raise ValueError(f"{self.state.value} fetch status must not carry a forecast result")

        if self.state == FetchState.FAILED:
            if not self.message or not self.message.strip():
                raise ValueError("failed fetch status must carry a message")
        elif self.message is not None:
            raise ValueError(f"{self.state.value} fetch status must not carry a message")
        return self

    @classmethod
    def idle(cls) -> FetchStatus:
        return cls(state=FetchState.IDLE)

    @classmethod
    def loading(cls) -> FetchStatus:
        return cls(state=FetchState.LOADING)

    @classmethod
    def success(cls, result: ForecastResult) -> FetchStatus:
        return cls(state=FetchState.SUCCESS, result=result)

    @classmethod
    def failed(cls, message: str) -> FetchStatus:
        return cls(state=FetchState.FAILED, message=message)

    @property
    def is_loading(self) -> bool:
        return self.state == FetchState.LOADING


class CalendarSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    day_label: str
    date_label: str
    time_label: str


class CurrentView(BaseModel):
    model_config = ConfigDict(frozen=True)

    icon: ConditionIcon = ConditionIcon.CLEAR
    temp_display: int | str = "--"
    condition_text: str | None = None
    humidity: float | None = None
    wind_kph: float | None = None
    sunrise: str | None = None


class ForecastRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    slot: CalendarSlot
    icon: ConditionIcon = ConditionIcon.CLEAR
    condition_text: str = "Clear"
    max_temp_display: int | str = "--"
    min_temp_display: int | str = "--"


class DerivedViewState(BaseModel):
    model_config = ConfigDict(frozen=True)

    calendar_slots: list[CalendarSlot]
    current: CurrentView
    rows: list[ForecastRow]


class ViewState(BaseModel):
    """Everything the page renders from, replaced as a unit on each transition."""

    model_config = ConfigDict(frozen=True)

    location: str
    status: FetchStatus = Field(default_factory=FetchStatus.idle)
    derived: DerivedViewState | None = None

    @property
    def display_name(self) -> str:
        result = self.status.result
        if result is not None and result.location_name:
            return result.location_name
        return self.location
