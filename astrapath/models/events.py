"""Event models published on the pub/sub topics of the companion core."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass
class TranscriptEvent:
    """A single transcript delivered by the transcription session."""
    text: str
    is_final: bool = False
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class DistressTriggered:
    """Raised when a final transcript matches a distress keyword."""
    event_id: str
    text: str
    timestamp: datetime = field(default_factory=datetime.now)


class NoticeLevel(Enum):
    """Severity of a user-visible notice."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notice:
    """One-line user-visible message."""
    message: str
    level: NoticeLevel = NoticeLevel.WARNING
    source: Optional[str] = None  # Component that raised the notice
    timestamp: datetime = field(default_factory=datetime.now)
