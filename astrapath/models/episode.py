"""Distress episode data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Location:
    """Geographic coordinates in decimal degrees."""
    lat: float
    lng: float

    def describe(self) -> str:
        """Format the coordinates the way the confirmation summary shows them."""
        return f"Lat: {self.lat:.6f}, Lng: {self.lng:.6f}"


class EpisodeStatus(Enum):
    """Status of a distress episode."""
    COUNTING = "counting"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class EscalationState(Enum):
    """Externally visible state of the escalation state machine."""
    ARMED = "armed"          # No episode open
    COUNTING = "counting"
    CONFIRMED = "confirmed"  # Escalated, awaiting acknowledgment


@dataclass
class DistressEpisode:
    """The bounded countdown-to-escalation workflow of one keyword match."""
    episode_id: str
    countdown_remaining: int
    started_at: datetime = field(default_factory=datetime.now)
    location: Optional[Location] = None
    status: EpisodeStatus = EpisodeStatus.COUNTING
    trigger_text: str = ""

    # Escalation outcome, filled in after confirmation
    confirmed_at: Optional[datetime] = None
    recording_started: bool = False
    dialed_number: Optional[str] = None

    @property
    def is_counting(self) -> bool:
        return self.status is EpisodeStatus.COUNTING

    @property
    def is_confirmed(self) -> bool:
        return self.status is EpisodeStatus.CONFIRMED
