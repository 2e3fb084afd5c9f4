"""Platform capability contracts for AstraPath."""

from .base import (
    AbstractTranscriptionSession,
    AbstractTranscriptionBackend,
    AbstractGeolocationProvider,
    AbstractMediaTrack,
    AbstractMediaStream,
    AbstractMediaRecorder,
    AbstractMediaDevices,
    AbstractTelephony,
)
from .errors import (
    CapabilityError,
    InvalidStateError,
    PermissionDeniedError,
    LocationUnavailableError,
    TranscriptionError,
    TranscriptionErrorCode,
)

__all__ = [
    "AbstractTranscriptionSession",
    "AbstractTranscriptionBackend",
    "AbstractGeolocationProvider",
    "AbstractMediaTrack",
    "AbstractMediaStream",
    "AbstractMediaRecorder",
    "AbstractMediaDevices",
    "AbstractTelephony",
    "CapabilityError",
    "InvalidStateError",
    "PermissionDeniedError",
    "LocationUnavailableError",
    "TranscriptionError",
    "TranscriptionErrorCode",
]
