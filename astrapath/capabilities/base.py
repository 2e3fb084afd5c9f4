"""Abstract base classes for the platform capabilities the core depends on."""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from ..models.events import TranscriptEvent
from ..models.episode import Location
from .errors import TranscriptionError

logger = logging.getLogger(__name__)


class AbstractTranscriptionSession(ABC):
    """One continuous speech-transcription session (the listening handle).

    Callbacks are assigned by the owner before start() is called:
        on_result(TranscriptEvent), on_error(TranscriptionError), on_end()
    A session may end on its own at any time (silence, transient errors);
    on_end fires once per started run, including runs ended by stop().
    """

    def __init__(self, continuous: bool = True, interim_results: bool = True, language: str = "en-US"):
        self.continuous = continuous
        self.interim_results = interim_results
        self.language = language
        self.on_result: Optional[Callable[[TranscriptEvent], None]] = None
        self.on_error: Optional[Callable[[TranscriptionError], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

    @abstractmethod
    def start(self) -> None:
        """Start transcribing.

        Raises:
            InvalidStateError: if the session is already running
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Request the session to stop. on_end fires once the stop completes."""
        pass


class AbstractTranscriptionBackend(ABC):
    """Factory for transcription sessions provided by the execution environment."""

    @abstractmethod
    def create_session(self,
                       continuous: bool = True,
                       interim_results: bool = True,
                       language: str = "en-US") -> AbstractTranscriptionSession:
        """Create a new, not yet started transcription session."""
        pass


class AbstractGeolocationProvider(ABC):
    """One-shot geolocation query."""

    @abstractmethod
    async def get_current_position(self) -> Location:
        """Resolve the current position.

        Raises:
            PermissionDeniedError: if geolocation access is refused
            LocationUnavailableError: if no position could be determined
        """
        pass


class AbstractMediaTrack(ABC):
    """A single audio or video track of a media stream."""

    kind: str = "audio"

    @abstractmethod
    def stop(self) -> None:
        """Release the underlying device. Safe to call more than once."""
        pass


class AbstractMediaStream(ABC):
    """A bundle of media tracks acquired from the capture devices."""

    @abstractmethod
    def get_tracks(self) -> List[AbstractMediaTrack]:
        pass

    def stop_all_tracks(self) -> None:
        """Stop every track of the stream."""
        for track in self.get_tracks():
            track.stop()


class AbstractMediaRecorder(ABC):
    """Records a media stream."""

    def __init__(self, stream: AbstractMediaStream):
        self.stream = stream

    @abstractmethod
    def start(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass


class AbstractMediaDevices(ABC):
    """Microphone and camera access."""

    @abstractmethod
    async def get_user_media(self, audio: bool = True, video: bool = True) -> AbstractMediaStream:
        """Acquire capture tracks.

        Raises:
            PermissionDeniedError: if access is refused
        """
        pass

    @abstractmethod
    def create_recorder(self, stream: AbstractMediaStream) -> AbstractMediaRecorder:
        pass


class AbstractTelephony(ABC):
    """Telephony dialer."""

    @abstractmethod
    def dial(self, number: str) -> None:
        """Hand a number off to the dialer. No result is reported back."""
        pass
