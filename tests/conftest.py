"""Pytest configuration and fixtures for AstraPath tests."""

import asyncio
import logging
import tempfile
from typing import Dict, List

import pytest
from pubsub import pub

from astrapath import topics
from astrapath.config import AstraPathConfig
from astrapath.capabilities.simulated import (
    SimulatedTranscriptionBackend,
    SimulatedGeolocation,
    SimulatedMediaDevices,
    SimulatedTelephony,
)
from astrapath.models.episode import Location
from astrapath.services.companion_service import CompanionController


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

HOME = Location(lat=12.971599, lng=77.594566)

# Message argument carried by each topic
TOPIC_ARGS = {
    topics.DISTRESS_TRIGGERED: "event",
    topics.LISTENING_STATE: "state",
    topics.COMPANION_STATE: "session",
    topics.COMPANION_CONSENT: "session",
    topics.EPISODE_STARTED: "episode",
    topics.EPISODE_TICK: "episode",
    topics.EPISODE_LOCATION: "episode",
    topics.EPISODE_CONFIRMED: "episode",
    topics.EPISODE_CANCELLED: "episode",
    topics.EPISODE_CLOSED: "episode",
    topics.SOS_PROMPT: "location",
    topics.SOS_CONFIRMED: "location",
    topics.SOS_CLOSED: "location",
    topics.NOTICE: "notice",
}


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests of a single component")
    config.addinivalue_line("markers", "integration: tests wiring several components together")


async def settle(iterations: int = 10) -> None:
    """Let callbacks scheduled on the event loop run."""
    for _ in range(iterations):
        await asyncio.sleep(0)


class TopicRecorder:
    """Records every message published on the given topics."""

    def __init__(self, *topic_names: str):
        self.messages: Dict[str, List] = {}
        # pubsub only keeps weak references to listeners
        self._listeners = []
        for topic in topic_names:
            self.messages[topic] = []
            listener = self._make_listener(self.messages[topic], TOPIC_ARGS[topic])
            pub.subscribe(listener, topic)
            self._listeners.append(listener)

    @staticmethod
    def _make_listener(store: List, arg_name: str):
        listeners = {
            "event": lambda event: store.append(event),
            "state": lambda state: store.append(state),
            "session": lambda session: store.append(session),
            "episode": lambda episode: store.append(episode),
            "location": lambda location: store.append(location),
            "notice": lambda notice: store.append(notice),
        }
        return listeners[arg_name]

    def __getitem__(self, topic: str) -> List:
        return self.messages[topic]


class ManualTimer:
    """Countdown timer fired by hand instead of by the clock."""

    def __init__(self, interval: float, callback):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self, times: int = 1) -> None:
        # Fires even after cancel() to simulate late ticks
        for _ in range(times):
            self.callback()


class ManualTimerFactory:

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, interval: float, callback) -> ManualTimer:
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> ManualTimer:
        return self.timers[-1]


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop every pub/sub listener between tests."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def config():
    """Default configuration without a file."""
    return AstraPathConfig()


@pytest.fixture
def timer_factory():
    return ManualTimerFactory()


@pytest.fixture
def devices():
    """Simulated capabilities with a known location and granted media."""
    return {
        "transcription_backend": SimulatedTranscriptionBackend(),
        "media_devices": SimulatedMediaDevices(grant=True),
        "geolocation": SimulatedGeolocation(location=HOME),
        "telephony": SimulatedTelephony(),
    }


@pytest.fixture
def controller(config, devices, timer_factory):
    """Companion controller over simulated devices; not yet activated."""
    controller = CompanionController(config, timer_factory=timer_factory, **devices)
    yield controller
    controller.shutdown()


@pytest.fixture
def active_controller(controller):
    """Companion controller with Companion Mode on (consent already given)."""
    controller.activate()
    return controller


@pytest.fixture
def home():
    """Location returned by the simulated geolocation device."""
    return HOME


@pytest.fixture
def recorder():
    """Factory for TopicRecorder instances."""
    return TopicRecorder


@pytest.fixture
def drain():
    """Coroutine function letting scheduled loop callbacks run."""
    return settle
