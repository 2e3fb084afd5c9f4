"""Listening supervisor state models."""

from enum import Enum


class SupervisorState(Enum):
    """Lifecycle of the continuous transcription session."""
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    RESTARTING = "restarting"
    STOPPED = "stopped"


class StopIntent(Enum):
    """Marks whether the next session termination was caused by us.

    NONE: no stop requested since the last start.
    STOPPING: stop issued, termination not yet observed.
    STOPPED: the termination caused by our stop has been observed.
    """
    NONE = "none"
    STOPPING = "stopping"
    STOPPED = "stopped"
