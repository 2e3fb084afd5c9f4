"""Permission-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class PermissionKind(Enum):
    """Capabilities gated behind a user/platform permission."""
    AUDIO_VIDEO = "audio_video"
    GEOLOCATION = "geolocation"


@dataclass
class PermissionGrant:
    """Result of a single permission request. Never cached."""
    kind: PermissionKind
    granted: bool
    # Media stream kept for recording; None for probes and denials
    stream: Optional[Any] = field(default=None, compare=False, repr=False)
    reason: Optional[str] = None
