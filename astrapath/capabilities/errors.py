"""Errors raised by platform capabilities."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CapabilityError(Exception):
    """Base class for capability failures."""


class InvalidStateError(CapabilityError):
    """Operation not valid in the capability's current state (e.g. already started)."""


class PermissionDeniedError(CapabilityError):
    """The user or platform refused access to a capability."""


class LocationUnavailableError(CapabilityError):
    """A position could not be determined."""


class TranscriptionErrorCode(Enum):
    """Error classification reported by a transcription session."""
    NO_SPEECH = "no-speech"
    AUDIO_CAPTURE = "audio-capture"
    NOT_ALLOWED = "not-allowed"
    SERVICE_NOT_ALLOWED = "service-not-allowed"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "TranscriptionErrorCode":
        """Map a raw error string onto a code; unknown strings become OTHER."""
        for code in cls:
            if code.value == value:
                return code
        return cls.OTHER


RECOVERABLE_ERRORS = frozenset({
    TranscriptionErrorCode.NO_SPEECH,
    TranscriptionErrorCode.AUDIO_CAPTURE,
})

PERMISSION_ERRORS = frozenset({
    TranscriptionErrorCode.NOT_ALLOWED,
    TranscriptionErrorCode.SERVICE_NOT_ALLOWED,
})


@dataclass
class TranscriptionError:
    """Error event delivered by a transcription session."""
    code: TranscriptionErrorCode
    message: Optional[str] = None

    @property
    def is_recoverable(self) -> bool:
        return self.code in RECOVERABLE_ERRORS

    @property
    def is_permission_error(self) -> bool:
        return self.code in PERMISSION_ERRORS
