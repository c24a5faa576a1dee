"""Tests for the periodic forecast refresh."""

import asyncio

from weatherview.controller import ForecastController
from weatherview.scheduler import FORECAST_REFRESH_JOB_ID, build_scheduler, run_forecast_refresh_job


def _controller(adapter, fixed_now) -> ForecastController:
    return ForecastController(adapter, default_location="Delhi", locale="en_US", clock=lambda: fixed_now)


class TestRefreshJob:
    def test_job_refetches_current_location(self, fake_adapter, fixed_now):
        controller = _controller(fake_adapter, fixed_now)
        asyncio.run(controller.fetch("Kochi"))

        asyncio.run(run_forecast_refresh_job(controller))

        assert fake_adapter.calls == ["Kochi", "Kochi"]

    def test_scheduler_registers_single_job(self, app_settings, fake_adapter, fixed_now):
        scheduler = build_scheduler(app_settings, _controller(fake_adapter, fixed_now))
        job = scheduler.get_job(FORECAST_REFRESH_JOB_ID)
        assert job is not None
        assert job.max_instances == 1
        assert job.coalesce is True
