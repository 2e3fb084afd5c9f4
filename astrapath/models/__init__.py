"""Data models for the AstraPath companion core."""

from .events import TranscriptEvent, DistressTriggered, Notice, NoticeLevel
from .episode import Location, EpisodeStatus, EscalationState, DistressEpisode
from .session import CompanionSession
from .permissions import PermissionKind, PermissionGrant
from .listening import SupervisorState, StopIntent

__all__ = [
    "TranscriptEvent",
    "DistressTriggered",
    "Notice",
    "NoticeLevel",
    # Episode models
    "Location",
    "EpisodeStatus",
    "EscalationState",
    "DistressEpisode",
    "CompanionSession",
    "PermissionKind",
    "PermissionGrant",
    "SupervisorState",
    "StopIntent",
]
