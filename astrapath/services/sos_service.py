"""Manual SOS flow, independent of Companion Mode."""

import logging
from typing import Optional
from pubsub import pub

from .. import topics
from ..models.episode import Location
from ..models.events import NoticeLevel
from ..models.sos import SosState
from .capability_gate import CapabilityGate
from .notices import NoticePublisher

logger = logging.getLogger(__name__)

LOCATION_REQUIRED_NOTICE = ("Could not retrieve your location. "
                            "Please enable location services to use the SOS feature.")


class SosService:
    """Two-step SOS: locate, then ask for confirmation before dispatching.

    Dispatch is simulated; the confirmed location is only logged and
    published on the sos.confirmed topic.
    """

    def __init__(self, gate: CapabilityGate, notices: Optional[NoticePublisher] = None):
        self.gate = gate
        self.notices = notices or NoticePublisher("sos")
        self.state = SosState.IDLE
        self.location: Optional[Location] = None
        # Bumped on close() so a location arriving afterwards is dropped
        self._generation = 0

    async def request(self) -> bool:
        """Locate the user and open the confirmation prompt.

        Returns:
            True if the prompt was opened
        """
        if self.state is not SosState.IDLE:
            logger.debug(f"SOS request ignored in state {self.state.value}")
            return False

        generation = self._generation
        self.state = SosState.LOCATING
        location = await self.gate.request_location()

        if generation != self._generation:
            logger.info("SOS closed while locating, discarding location")
            return False

        if location is None:
            self.state = SosState.IDLE
            self.notices.publish(LOCATION_REQUIRED_NOTICE, NoticeLevel.ERROR)
            return False

        self.location = location
        self.state = SosState.AWAITING_CONFIRMATION
        logger.info(f"SOS prompt opened at {location.describe()}")
        pub.sendMessage(topics.SOS_PROMPT, location=location)
        return True

    def confirm(self) -> bool:
        """Confirm the prompt and dispatch the (simulated) alert."""
        if self.state is not SosState.AWAITING_CONFIRMATION:
            logger.debug(f"SOS confirm ignored in state {self.state.value}")
            return False

        self.state = SosState.CONFIRMED
        logger.warning(f"SOS Alert confirmed for location: {self.location.describe()}")
        pub.sendMessage(topics.SOS_CONFIRMED, location=self.location)
        return True

    def close(self) -> None:
        """Close either step and forget the held location."""
        if self.state is SosState.IDLE:
            return
        self._generation += 1
        previous = self.location
        self.location = None
        self.state = SosState.IDLE
        logger.info("SOS flow closed")
        pub.sendMessage(topics.SOS_CLOSED, location=previous)
