"""Companion session context models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class CompanionSession:
    """Opt-in continuous audio-monitoring state.

    Exactly one instance exists per application. It is owned by the
    CompanionController; the listening supervisor and the escalation state
    machine only read it.
    """
    active: bool = False
    activated_at: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None
    deactivation_reason: Optional[str] = None
