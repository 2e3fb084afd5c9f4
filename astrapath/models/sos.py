"""Manual SOS flow models."""

from enum import Enum


class SosState(Enum):
    """Steps of the manual SOS flow."""
    IDLE = "idle"
    LOCATING = "locating"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
