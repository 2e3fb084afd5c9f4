"""Emergency number dialer."""

import logging

from ..capabilities.base import AbstractTelephony

logger = logging.getLogger(__name__)


class EmergencyDialer:
    """Fire-and-forget handoff of the emergency number to the telephony dialer."""

    def __init__(self, telephony: AbstractTelephony, emergency_number: str = "112"):
        self.telephony = telephony
        self.emergency_number = emergency_number

    def dial(self) -> bool:
        """Hand the emergency number to the dialer. Never retries.

        Returns:
            True if the handoff did not raise
        """
        logger.info(f"Initiating emergency call to {self.emergency_number}")
        try:
            self.telephony.dial(self.emergency_number)
        except Exception as e:
            logger.error(f"Emergency dial to {self.emergency_number} failed: {e}")
            return False
        return True
