from .base import (
    ForecastHttpError,
    ForecastTransportError,
    WeatherAdapter,
    WeatherAdapterError,
)
from .weatherapi import WeatherApiForecastAdapter

__all__ = [
    "ForecastHttpError",
    "ForecastTransportError",
    "WeatherAdapter",
    "WeatherAdapterError",
    "WeatherApiForecastAdapter",
]
