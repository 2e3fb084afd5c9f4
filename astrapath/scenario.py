"""Replay of scripted scenarios against the simulated capabilities.

A scenario file is YAML:

    name: distress-cancel
    duration: 8
    devices:
      location: {lat: 12.9716, lng: 77.5946}   # null for "unavailable"
      location_delay: 0.5
      media_granted: true
      recorder_fails: false
    steps:
      - {at: 0.0, action: toggle}
      - {at: 0.1, action: consent}
      - {at: 0.5, action: transcript, text: "please help me now"}
      - {at: 4.0, action: cancel}
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from .capabilities.errors import TranscriptionErrorCode
from .capabilities.simulated import (
    SimulatedTranscriptionBackend,
    SimulatedGeolocation,
    SimulatedMediaDevices,
    SimulatedTelephony,
)
from .models.episode import Location
from .services.companion_service import CompanionController

logger = logging.getLogger(__name__)

ACTIONS = frozenset({
    "toggle", "consent", "decline",
    "transcript", "error", "end",
    "cancel", "close",
    "sos", "sos_confirm", "sos_close",
})


@dataclass
class ScenarioStep:
    """A single timed action of a scenario."""
    at: float  # Seconds from scenario start
    action: str
    text: str = ""
    final: bool = True
    error: str = "other"


@dataclass
class DeviceSettings:
    """How the simulated devices behave during a scenario."""
    location: Optional[Location] = None
    location_delay: float = 0.0
    media_granted: bool = True
    recorder_fails: bool = False
    dial_fails: bool = False


@dataclass
class Scenario:
    name: str
    steps: List[ScenarioStep]
    devices: DeviceSettings = field(default_factory=DeviceSettings)
    duration: Optional[float] = None  # Defaults to last step + settle time


def _parse_location(data: Any) -> Optional[Location]:
    if data is None:
        return None
    if not isinstance(data, dict) or 'lat' not in data or 'lng' not in data:
        raise ValueError(f"Invalid location (expected lat/lng mapping): {data}")
    return Location(lat=float(data['lat']), lng=float(data['lng']))


def parse_scenario(data: Dict[str, Any]) -> Scenario:
    """Build a Scenario from its parsed YAML mapping.

    Raises:
        ValueError: on unknown actions or malformed steps
    """
    if not isinstance(data, dict):
        raise ValueError("Scenario must be a mapping")

    devices_data = data.get('devices') or {}
    devices = DeviceSettings(
        location=_parse_location(devices_data.get('location')),
        location_delay=float(devices_data.get('location_delay', 0.0)),
        media_granted=bool(devices_data.get('media_granted', True)),
        recorder_fails=bool(devices_data.get('recorder_fails', False)),
        dial_fails=bool(devices_data.get('dial_fails', False)),
    )

    steps = []
    for index, raw in enumerate(data.get('steps') or []):
        if not isinstance(raw, dict) or 'action' not in raw:
            raise ValueError(f"Step {index} must be a mapping with an 'action'")
        action = raw['action']
        if action not in ACTIONS:
            raise ValueError(f"Step {index}: unknown action '{action}'")
        if action == "transcript" and not raw.get('text'):
            raise ValueError(f"Step {index}: transcript step needs 'text'")
        steps.append(ScenarioStep(
            at=float(raw.get('at', 0.0)),
            action=action,
            text=str(raw.get('text', '')),
            final=bool(raw.get('final', True)),
            error=str(raw.get('error', 'other')),
        ))

    if not steps:
        raise ValueError("Scenario has no steps")

    steps.sort(key=lambda step: step.at)
    duration = data.get('duration')
    return Scenario(
        name=str(data.get('name', 'scenario')),
        steps=steps,
        devices=devices,
        duration=float(duration) if duration is not None else None,
    )


def load_scenario(path: str) -> Scenario:
    """Load a scenario YAML file."""
    scenario_file = Path(path)
    if not scenario_file.exists():
        raise FileNotFoundError(f"Scenario file not found: {scenario_file}")

    try:
        with open(scenario_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in scenario file: {e}")

    scenario = parse_scenario(data)
    logger.info(f"Loaded scenario '{scenario.name}' with {len(scenario.steps)} steps")
    return scenario


class ScenarioRunner:
    """Plays a scenario's steps in time against a CompanionController."""

    def __init__(self,
                 controller: CompanionController,
                 backend: SimulatedTranscriptionBackend,
                 scenario: Scenario,
                 settle_seconds: float = 1.0):
        self.controller = controller
        self.backend = backend
        self.scenario = scenario
        self.settle_seconds = settle_seconds

    async def run(self) -> None:
        """Run every step at its scheduled offset, then let pending work settle."""
        loop = asyncio.get_running_loop()
        started = loop.time()

        for step in self.scenario.steps:
            delay = step.at - (loop.time() - started)
            if delay > 0:
                await asyncio.sleep(delay)
            logger.info(f"Scenario step @{step.at:.1f}s: {step.action}")
            await self._apply(step)

        end = self.scenario.duration
        if end is None:
            end = self.scenario.steps[-1].at + self.settle_seconds
        remaining = end - (loop.time() - started)
        if remaining > 0:
            await asyncio.sleep(remaining)
        await self.controller.escalation.wait_for_escalation()

    async def _apply(self, step: ScenarioStep) -> None:
        controller = self.controller
        session = self.backend.current

        if step.action == "toggle":
            controller.toggle()
        elif step.action == "consent":
            await controller.confirm_consent()
        elif step.action == "decline":
            controller.decline_consent()
        elif step.action == "transcript":
            if session is None:
                logger.warning("Transcript step before any listening session was opened")
                return
            session.emit_result(step.text, is_final=step.final)
        elif step.action == "error":
            if session is None:
                logger.warning("Error step before any listening session was opened")
                return
            session.emit_error(TranscriptionErrorCode.parse(step.error))
        elif step.action == "end":
            if session is not None:
                session.end()
        elif step.action == "cancel":
            controller.escalation.cancel()
        elif step.action == "close":
            controller.escalation.close()
        elif step.action == "sos":
            await controller.sos.request()
        elif step.action == "sos_confirm":
            controller.sos.confirm()
        elif step.action == "sos_close":
            controller.sos.close()


def build_simulated_devices(devices: DeviceSettings) -> Dict[str, Any]:
    """Create simulated capabilities matching the scenario's device settings."""
    return {
        "transcription_backend": SimulatedTranscriptionBackend(),
        "media_devices": SimulatedMediaDevices(grant=devices.media_granted,
                                               recorder_fails=devices.recorder_fails),
        "geolocation": SimulatedGeolocation(location=devices.location, delay=devices.location_delay),
        "telephony": SimulatedTelephony(fail=devices.dial_fails),
    }
