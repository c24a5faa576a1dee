"""Tests for the forecast controller state machine."""

import asyncio
from datetime import datetime

import pytest

from weatherview.adapters.weather import ForecastHttpError, ForecastTransportError
from weatherview.controller import CANCELLED_MESSAGE, ForecastController
from weatherview.domain.models import ConditionIcon, FetchState


@pytest.fixture
def controller(fake_adapter, fixed_now: datetime) -> ForecastController:
    return ForecastController(
        fake_adapter,
        default_location="Delhi",
        locale="en_US",
        clock=lambda: fixed_now,
    )


class TestFetch:
    def test_starts_idle(self, controller: ForecastController):
        assert controller.status.state == FetchState.IDLE
        assert controller.state.location == "Delhi"
        assert controller.state.derived is None

    def test_success_derives_view_state(self, controller, fake_adapter):
        status = asyncio.run(controller.fetch("Delhi"))

        assert status.state == FetchState.SUCCESS
        assert fake_adapter.calls == ["Delhi"]
        derived = controller.state.derived
        assert derived is not None
        assert derived.current.icon is ConditionIcon.PARTLY_CLOUDY
        assert derived.current.temp_display == 31
        assert len(derived.calendar_slots) == 7
        assert controller.state.display_name == "Delhi"

    def test_location_is_trimmed(self, controller, fake_adapter):
        asyncio.run(controller.fetch("  Mumbai  "))
        assert fake_adapter.calls == ["Mumbai"]
        assert controller.state.location == "Mumbai"

    def test_blank_location_is_a_no_op(self, controller, fake_adapter):
        status = asyncio.run(controller.fetch("   "))
        assert status.state == FetchState.IDLE
        assert fake_adapter.calls == []

    def test_http_error_becomes_failed_status(self, controller, fake_adapter):
        fake_adapter.error = ForecastHttpError(404, "city not found")

        status = asyncio.run(controller.fetch("Atlantis"))

        assert status.state == FetchState.FAILED
        assert "404" in status.message
        assert "city not found" in status.message
        assert controller.state.derived is None
        assert controller.state.status.result is None

    def test_transport_error_becomes_failed_status(self, controller, fake_adapter):
        fake_adapter.error = ForecastTransportError()

        status = asyncio.run(controller.fetch("Delhi"))

        assert status.state == FetchState.FAILED
        assert status.message == "An unknown network error occurred."

    def test_unexpected_error_does_not_escape(self, controller, fake_adapter):
        fake_adapter.error = KeyError("forecast")

        status = asyncio.run(controller.fetch("Delhi"))

        assert status.state == FetchState.FAILED
        assert status.message

    def test_failure_then_success_clears_error(self, controller, fake_adapter):
        fake_adapter.error = ForecastTransportError("connection refused")
        asyncio.run(controller.fetch("Delhi"))
        fake_adapter.error = None

        status = asyncio.run(controller.fetch("Delhi"))

        assert status.state == FetchState.SUCCESS
        assert controller.state.status.message is None

    def test_refresh_refetches_current_location(self, controller, fake_adapter):
        asyncio.run(controller.fetch("Pune"))
        asyncio.run(controller.refresh())
        assert fake_adapter.calls == ["Pune", "Pune"]


class TestInFlightGuard:
    def test_second_fetch_while_loading_is_ignored(self, controller, fake_adapter):
        fake_adapter.release.clear()

        async def scenario():
            first = asyncio.create_task(controller.fetch("Delhi"))
            await asyncio.sleep(0)
            assert controller.status.is_loading

            second = await controller.fetch("Mumbai")
            assert second.is_loading

            fake_adapter.release.set()
            return await first

        status = asyncio.run(scenario())

        assert fake_adapter.calls == ["Delhi"]
        assert status.state == FetchState.SUCCESS
        assert controller.state.location == "Delhi"

    def test_submission_mid_flight_supersedes_stale_response(self, controller, fake_adapter):
        fake_adapter.release.clear()

        async def scenario():
            first = asyncio.create_task(controller.submit_location("Delhi"))
            await asyncio.sleep(0)

            pending = await controller.submit_location("Mumbai")
            assert pending.is_loading
            assert controller.state.location == "Mumbai"

            fake_adapter.release.set()
            return await first

        status = asyncio.run(scenario())

        assert fake_adapter.calls == ["Delhi", "Mumbai"]
        assert status.state == FetchState.SUCCESS
        assert controller.state.location == "Mumbai"
        assert controller.state.status.result.location_name == "Mumbai"

    def test_same_location_mid_flight_does_not_refetch(self, controller, fake_adapter):
        fake_adapter.release.clear()

        async def scenario():
            first = asyncio.create_task(controller.submit_location("Delhi"))
            await asyncio.sleep(0)
            await controller.submit_location(" Delhi ")
            fake_adapter.release.set()
            return await first

        asyncio.run(scenario())

        assert fake_adapter.calls == ["Delhi"]

    def test_empty_submission_is_ignored(self, controller, fake_adapter):
        status = asyncio.run(controller.submit_location(""))
        assert status.state == FetchState.IDLE
        assert fake_adapter.calls == []

    def test_cancelled_fetch_does_not_leave_controller_loading(self, controller, fake_adapter):
        fake_adapter.release.clear()

        async def scenario():
            first = asyncio.create_task(controller.fetch("Delhi"))
            await asyncio.sleep(0)
            first.cancel()
            with pytest.raises(asyncio.CancelledError):
                await first

            assert controller.status.state == FetchState.FAILED
            assert controller.status.message == CANCELLED_MESSAGE

            fake_adapter.release.set()
            return await controller.fetch("Mumbai")

        status = asyncio.run(scenario())

        assert status.state == FetchState.SUCCESS
        assert sorted(fake_adapter.calls) == ["Delhi", "Mumbai"]
        assert controller.state.location == "Mumbai"
