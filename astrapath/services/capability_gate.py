"""On-demand permission acquisition for media capture and geolocation."""

import asyncio
import logging
from typing import Optional

from ..capabilities.base import AbstractMediaDevices, AbstractGeolocationProvider
from ..capabilities.errors import CapabilityError, PermissionDeniedError
from ..models.episode import Location
from ..models.permissions import PermissionGrant, PermissionKind

logger = logging.getLogger(__name__)


class CapabilityGate:
    """Requests microphone+camera and geolocation access, one request at a time.

    Nothing is cached: every call goes back to the platform, so a permission
    revoked between calls is noticed on the next request.
    """

    def __init__(self,
                 media_devices: AbstractMediaDevices,
                 geolocation: AbstractGeolocationProvider,
                 location_timeout: Optional[float] = 10.0):
        """Initialize capability gate.

        Args:
            media_devices: Microphone/camera capability
            geolocation: One-shot geolocation capability
            location_timeout: Seconds before a location request counts as
                             unavailable; None waits indefinitely
        """
        self.media_devices = media_devices
        self.geolocation = geolocation
        self.location_timeout = location_timeout

    async def request_audio_video(self, keep_stream: bool = False) -> PermissionGrant:
        """Acquire microphone and camera access.

        Args:
            keep_stream: Hand the acquired stream to the caller (for recording).
                        When False the probe stream is released right away.

        Returns:
            PermissionGrant; denied grants never carry a stream
        """
        try:
            stream = await self.media_devices.get_user_media(audio=True, video=True)
        except PermissionDeniedError as e:
            logger.warning(f"Audio/video permission denied: {e}")
            return PermissionGrant(PermissionKind.AUDIO_VIDEO, granted=False, reason=str(e))
        except CapabilityError as e:
            logger.error(f"Audio/video acquisition failed: {e}")
            return PermissionGrant(PermissionKind.AUDIO_VIDEO, granted=False, reason=str(e))
        except Exception as e:
            logger.error(f"Unexpected error acquiring audio/video: {e}", exc_info=True)
            return PermissionGrant(PermissionKind.AUDIO_VIDEO, granted=False, reason=str(e))

        if not keep_stream:
            stream.stop_all_tracks()
            stream = None
        logger.info("Audio/video permission granted")
        return PermissionGrant(PermissionKind.AUDIO_VIDEO, granted=True, stream=stream)

    async def request_location(self) -> Optional[Location]:
        """Query the current position once.

        Returns:
            Coordinates, or None when the position is unavailable, denied or
            the request timed out
        """
        try:
            if self.location_timeout is None:
                location = await self.geolocation.get_current_position()
            else:
                location = await asyncio.wait_for(self.geolocation.get_current_position(),
                                                  timeout=self.location_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Location request timed out after {self.location_timeout}s")
            return None
        except CapabilityError as e:
            logger.warning(f"Could not retrieve location: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error retrieving location: {e}", exc_info=True)
            return None

        logger.info(f"Location acquired: {location.describe()}")
        return location
