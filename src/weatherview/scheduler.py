from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .controller import ForecastController
from .settings import AppSettings

LOGGER = logging.getLogger(__name__)

FORECAST_REFRESH_JOB_ID = "forecast_refresh_job"


async def run_forecast_refresh_job(controller: ForecastController) -> None:
    location = controller.state.location
    status = await controller.refresh()
    LOGGER.info("Forecast refresh job for '%s' finished with status '%s'", location, status.state.value)


def build_scheduler(settings: AppSettings, controller: ForecastController) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=settings.timezone)
    scheduler.add_job(
        run_forecast_refresh_job,
        "interval",
        kwargs={"controller": controller},
        minutes=settings.yaml.refresh.interval_minutes,
        jitter=settings.yaml.refresh.jitter_seconds,
        id=FORECAST_REFRESH_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )
    return scheduler
