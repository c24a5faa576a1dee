from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from .adapters.weather import ForecastHttpError, WeatherAdapter, WeatherAdapterError
from .adapters.weather.base import GENERIC_TRANSPORT_MESSAGE
from .domain.models import FetchStatus, ForecastResult, ViewState
from .view_state import derive_view_state

LOGGER = logging.getLogger(__name__)

CANCELLED_MESSAGE = "The forecast request was cancelled."


class ForecastController:
    """Owns the page state and runs at most one forecast request at a time.

    Every initiated request is tagged with a generation number. A response is
    only applied while its generation is still the latest; a location submitted
    mid-flight bumps the generation, so the older response is dropped and the
    newer location is fetched once the slot frees up.
    """

    def __init__(
        self,
        adapter: WeatherAdapter,
        *,
        default_location: str,
        locale: str,
        timezone: ZoneInfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._adapter = adapter
        self._locale = locale
        self._timezone = timezone
        self._clock = clock or self._default_clock
        self._generation = 0
        self._state = ViewState(location=default_location.strip())

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def status(self) -> FetchStatus:
        return self._state.status

    def _default_clock(self) -> datetime:
        return datetime.now(self._timezone)

    async def submit_location(self, raw_location: str) -> FetchStatus:
        location = raw_location.strip()
        if not location:
            LOGGER.debug("Ignoring empty location submission")
            return self._state.status

        if self._state.status.is_loading:
            if location != self._state.location:
                self._generation += 1
                self._state = self._state.model_copy(update={"location": location})
                LOGGER.info("Location changed to '%s' while a fetch was in flight", location)
            return self._state.status

        return await self.fetch(location)

    async def refresh(self) -> FetchStatus:
        return await self.fetch(self._state.location)

    async def fetch(self, location: str) -> FetchStatus:
        query = location.strip()
        if not query:
            LOGGER.debug("Ignoring fetch for empty location")
            return self._state.status
        if self._state.status.is_loading:
            LOGGER.info("Fetch for '%s' ignored: another fetch is in flight", query)
            return self._state.status

        while True:
            self._generation += 1
            generation = self._generation
            self._state = ViewState(location=query, status=FetchStatus.loading())

            try:
                status = await self._request(query)
            except asyncio.CancelledError:
                # Nothing is in flight once the awaiting task is gone.
                cancelled = FetchStatus.failed(CANCELLED_MESSAGE)
                self._state = ViewState(location=self._state.location, status=cancelled)
                LOGGER.warning("Forecast request for '%s' was cancelled", query)
                raise
            if generation == self._generation:
                self._apply(query, status)
                return self._state.status

            LOGGER.info("Discarding superseded forecast response for '%s'", query)
            query = self._state.location

    async def _request(self, location: str) -> FetchStatus:
        try:
            result = await asyncio.to_thread(self._adapter.get_forecast, location)
        except ForecastHttpError as exc:
            LOGGER.warning("Forecast request for '%s' returned HTTP %s", location, exc.status_code)
            return FetchStatus.failed(str(exc))
        except WeatherAdapterError as exc:
            LOGGER.warning("Forecast request for '%s' failed: %s", location, exc)
            return FetchStatus.failed(str(exc) or GENERIC_TRANSPORT_MESSAGE)
        except Exception as exc:
            LOGGER.exception("Forecast request for '%s' failed", location)
            return FetchStatus.failed(str(exc) or GENERIC_TRANSPORT_MESSAGE)
        return FetchStatus.success(result)

    def _apply(self, location: str, status: FetchStatus) -> None:
        result: ForecastResult | None = status.result
        if result is None:
            self._state = ViewState(location=location, status=status)
            return

        try:
            derived = derive_view_state(result, self._locale, self._clock())
        except Exception as exc:  # pragma: no cover - defensive fallback
            LOGGER.exception("Building the view state for '%s' failed", location)
            failed = FetchStatus.failed(str(exc) or GENERIC_TRANSPORT_MESSAGE)
            self._state = ViewState(location=location, status=failed)
            return

        self._state = ViewState(location=location, status=status, derived=derived)
        LOGGER.info(
            "Forecast updated for '%s' (%d forecast days)",
            result.location_name or location,
            len(result.days),
        )
