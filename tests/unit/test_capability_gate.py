"""Unit tests for CapabilityGate."""

import pytest

from astrapath.capabilities.errors import CapabilityError, PermissionDeniedError
from astrapath.capabilities.simulated import SimulatedGeolocation, SimulatedMediaDevices
from astrapath.models.permissions import PermissionKind
from astrapath.services.capability_gate import CapabilityGate


@pytest.mark.unit
class TestCapabilityGate:
    """Test cases for CapabilityGate."""

    @pytest.mark.asyncio
    async def test_audio_video_probe_releases_stream(self, home):
        media = SimulatedMediaDevices(grant=True)
        gate = CapabilityGate(media, SimulatedGeolocation(location=home))

        grant = await gate.request_audio_video()

        assert grant.kind is PermissionKind.AUDIO_VIDEO
        assert grant.granted is True
        assert grant.stream is None
        assert media.streams[0].all_stopped

    @pytest.mark.asyncio
    async def test_audio_video_keep_stream(self, home):
        media = SimulatedMediaDevices(grant=True)
        gate = CapabilityGate(media, SimulatedGeolocation(location=home))

        grant = await gate.request_audio_video(keep_stream=True)

        assert grant.granted is True
        assert grant.stream is media.streams[0]
        assert not grant.stream.all_stopped
        assert [track.kind for track in grant.stream.get_tracks()] == ["audio", "video"]

    @pytest.mark.asyncio
    async def test_audio_video_denied(self, home):
        media = SimulatedMediaDevices(grant=False)
        gate = CapabilityGate(media, SimulatedGeolocation(location=home))

        grant = await gate.request_audio_video(keep_stream=True)

        assert grant.granted is False
        assert grant.stream is None
        assert grant.reason

    @pytest.mark.asyncio
    async def test_audio_video_never_cached(self, home):
        media = SimulatedMediaDevices(grant=True)
        gate = CapabilityGate(media, SimulatedGeolocation(location=home))

        assert (await gate.request_audio_video()).granted
        media.grant = False
        assert not (await gate.request_audio_video()).granted
        assert media.request_count == 2

    @pytest.mark.asyncio
    async def test_location_success(self, home):
        gate = CapabilityGate(SimulatedMediaDevices(), SimulatedGeolocation(location=home))

        assert await gate.request_location() == home

    @pytest.mark.asyncio
    @pytest.mark.parametrize("geolocation", [
        SimulatedGeolocation(location=None),
        SimulatedGeolocation(error=PermissionDeniedError("User denied Geolocation")),
        SimulatedGeolocation(error=CapabilityError("provider crashed")),
    ])
    async def test_location_unavailable_returns_none(self, geolocation):
        gate = CapabilityGate(SimulatedMediaDevices(), geolocation)

        assert await gate.request_location() is None
        assert geolocation.request_count == 1

    @pytest.mark.asyncio
    async def test_location_timeout_returns_none(self, home):
        geolocation = SimulatedGeolocation(location=home, delay=1.0)
        gate = CapabilityGate(SimulatedMediaDevices(), geolocation, location_timeout=0.01)

        assert await gate.request_location() is None

    @pytest.mark.asyncio
    async def test_audio_video_device_fault_is_denied(self, home):
        media = SimulatedMediaDevices(error=OSError("camera busy"))
        gate = CapabilityGate(media, SimulatedGeolocation(location=home))

        grant = await gate.request_audio_video(keep_stream=True)

        assert grant.granted is False
        assert grant.stream is None
        assert grant.reason == "camera busy"

    @pytest.mark.asyncio
    async def test_location_device_fault_returns_none(self):
        geolocation = SimulatedGeolocation(error=OSError("gps offline"))
        gate = CapabilityGate(SimulatedMediaDevices(), geolocation)

        assert await gate.request_location() is None
