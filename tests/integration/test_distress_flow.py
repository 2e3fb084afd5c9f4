"""Integration tests for the complete distress detection workflow on a real event loop."""

import asyncio
import io

import pytest
from rich.console import Console

from astrapath import topics
from astrapath.capabilities.simulated import (
    SimulatedTranscriptionBackend,
    SimulatedGeolocation,
    SimulatedMediaDevices,
    SimulatedTelephony,
)
from astrapath.config import AstraPathConfig
from astrapath.models.episode import EscalationState
from astrapath.models.listening import SupervisorState
from astrapath.services.companion_service import CompanionController
from astrapath.services.timer import IntervalTimer
from astrapath.ui.console_view import ConsoleView


@pytest.fixture
def fast_config():
    config = AstraPathConfig()
    config.set('escalation.countdown_seconds', 3)
    config.set('escalation.tick_interval_seconds', 0.01)
    config.set('geolocation.timeout_seconds', 1.0)
    return config


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def view(output):
    view = ConsoleView(console=Console(file=output, width=100, color_system=None), countdown_seconds=3)
    yield view
    view.shutdown()


def build(config, geolocation):
    devices = {
        "transcription_backend": SimulatedTranscriptionBackend(),
        "media_devices": SimulatedMediaDevices(),
        "geolocation": geolocation,
        "telephony": SimulatedTelephony(),
    }
    return CompanionController(config, **devices), devices


async def wait_for_state(machine, state, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while machine.state is not state:
        if loop.time() > deadline:
            raise AssertionError(f"Timed out waiting for {state}, still {machine.state}")
        await asyncio.sleep(0.005)


@pytest.mark.integration
class TestDistressFlowIntegration:
    """End-to-end flows: consent, listening, countdown, escalation, acknowledgment."""

    @pytest.mark.asyncio
    async def test_keyword_to_emergency_call(self, fast_config, home, view, output, recorder):
        events = recorder(topics.EPISODE_TICK, topics.EPISODE_CONFIRMED)
        controller, devices = build(fast_config, SimulatedGeolocation(location=home))
        try:
            controller.toggle()
            assert await controller.confirm_consent() is True

            devices["transcription_backend"].current.emit_result("somebody help me", is_final=True)
            await wait_for_state(controller.escalation, EscalationState.CONFIRMED)
            await controller.escalation.wait_for_escalation()

            assert [e.countdown_remaining for e in events[topics.EPISODE_TICK]][-1] == 0
            assert len(events[topics.EPISODE_TICK]) == 3
            assert len(events[topics.EPISODE_CONFIRMED]) == 1
            assert devices["telephony"].dialed == ["112"]
            assert controller.escalation.episode.location == home

            # Give the (cancelled) timer a chance to misfire
            await asyncio.sleep(0.05)
            assert devices["telephony"].dialed == ["112"]

            controller.escalation.close()
            await asyncio.sleep(0.01)
            assert controller.listening.state is SupervisorState.LISTENING
            assert devices["media_devices"].streams[-1].all_stopped
        finally:
            controller.shutdown()

        text = output.getvalue()
        assert "Distress Signal Detected!" in text
        assert "Emergency Protocol Activated" in text
        assert home.describe() in text

    @pytest.mark.asyncio
    async def test_confirmation_without_location(self, fast_config, view, output):
        controller, devices = build(fast_config, SimulatedGeolocation(location=None))
        try:
            controller.activate()
            devices["transcription_backend"].current.emit_result("leave me alone", is_final=True)
            await wait_for_state(controller.escalation, EscalationState.CONFIRMED)
            await controller.escalation.wait_for_escalation()

            assert controller.escalation.episode.location is None
            assert devices["telephony"].dialed == ["112"]
        finally:
            controller.shutdown()

        assert "Could not retrieve location." in output.getvalue()

    @pytest.mark.asyncio
    async def test_silence_restarts_and_cancel_resumes(self, fast_config, home):
        fast_config.set('escalation.tick_interval_seconds', 0.05)
        controller, devices = build(fast_config, SimulatedGeolocation(location=home))
        try:
            controller.activate()
            handle = devices["transcription_backend"].current

            # Silence timeouts end the session on their own
            handle.end()
            handle.end()
            assert handle.start_count == 3

            handle.emit_result("stop", is_final=True)
            await asyncio.sleep(0.06)
            assert controller.escalation.state is EscalationState.COUNTING
            assert controller.escalation.cancel() is True

            await asyncio.sleep(0.01)
            assert controller.listening.state is SupervisorState.LISTENING
            assert handle.start_count == 4
            assert devices["telephony"].dialed == []
        finally:
            controller.shutdown()


@pytest.mark.integration
class TestIntervalTimer:
    """Test cases for the asyncio interval timer."""

    @pytest.mark.asyncio
    async def test_fires_until_cancelled(self):
        ticks = []
        timer = IntervalTimer(0.01, lambda: ticks.append(1))

        timer.start()
        assert timer.is_running
        await asyncio.sleep(0.055)
        timer.cancel()
        count = len(ticks)
        await asyncio.sleep(0.03)

        assert count >= 2
        assert len(ticks) == count
        assert not timer.is_running

    @pytest.mark.asyncio
    async def test_callback_may_cancel_timer(self):
        ticks = []

        def on_tick():
            ticks.append(1)
            timer.cancel()

        timer = IntervalTimer(0.01, on_tick)
        timer.start()
        await asyncio.sleep(0.05)

        assert ticks == [1]

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_timer(self):
        ticks = []

        def on_tick():
            ticks.append(1)
            raise RuntimeError("boom")

        timer = IntervalTimer(0.01, on_tick)
        timer.start()
        await asyncio.sleep(0.045)
        timer.cancel()

        assert len(ticks) >= 2
