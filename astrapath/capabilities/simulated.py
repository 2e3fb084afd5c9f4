"""Simulated capability implementations.

These stand in for the browser/device capabilities when replaying scenarios
from the command line and in tests. They behave like the platform ones where
it matters to the core: stop() ends a transcription session asynchronously,
errors are followed by a session end, and a second start() on a running
session raises InvalidStateError.
"""

import asyncio
import logging
from typing import List, Optional

from ..models.events import TranscriptEvent
from ..models.episode import Location
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

logger = logging.getLogger(__name__)


def _call_soon(callback) -> None:
    """Run callback on the next loop iteration, or right away without a loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return
    loop.call_soon(callback)


class SimulatedTranscriptionSession(AbstractTranscriptionSession):
    """Transcription session driven by explicit emit_* calls."""

    def __init__(self, continuous: bool = True, interim_results: bool = True, language: str = "en-US"):
        super().__init__(continuous, interim_results, language)
        self.is_running = False
        self.start_count = 0
        self.stop_count = 0
        # Exceptions raised by upcoming start() calls, consumed in order
        self.start_failures: List[Exception] = []

    def start(self) -> None:
        if self.start_failures:
            raise self.start_failures.pop(0)
        if self.is_running:
            raise InvalidStateError("Transcription session has already started")
        self.is_running = True
        self.start_count += 1
        logger.debug(f"Simulated transcription session started (run {self.start_count})")

    def stop(self) -> None:
        self.stop_count += 1
        if not self.is_running:
            return
        _call_soon(self._finish)

    def _finish(self) -> None:
        if not self.is_running:
            return
        self.is_running = False
        logger.debug("Simulated transcription session ended")
        if self.on_end:
            self.on_end()

    def emit_result(self, text: str, is_final: bool = True) -> None:
        """Deliver a transcript to the owner."""
        if not self.is_running:
            logger.debug(f"Dropping transcript on stopped session: {text!r}")
            return
        if self.on_result:
            self.on_result(TranscriptEvent(text=text, is_final=is_final))

    def emit_error(self, code: TranscriptionErrorCode, end: bool = True) -> None:
        """Deliver an error; like the platform, the session then ends."""
        if self.on_error:
            self.on_error(TranscriptionError(code=code))
        if end:
            self.end()

    def end(self) -> None:
        """End the session on its own (silence timeout, glitch)."""
        self._finish()


class SimulatedTranscriptionBackend(AbstractTranscriptionBackend):
    """Creates SimulatedTranscriptionSession instances and keeps track of them."""

    def __init__(self, start_failures: Optional[List[Exception]] = None):
        self.sessions: List[SimulatedTranscriptionSession] = []
        # Handed to the next created session
        self.start_failures = list(start_failures or [])

    def create_session(self,
                       continuous: bool = True,
                       interim_results: bool = True,
                       language: str = "en-US") -> SimulatedTranscriptionSession:
        session = SimulatedTranscriptionSession(continuous, interim_results, language)
        session.start_failures, self.start_failures = self.start_failures, []
        self.sessions.append(session)
        return session

    @property
    def current(self) -> Optional[SimulatedTranscriptionSession]:
        return self.sessions[-1] if self.sessions else None


class SimulatedGeolocation(AbstractGeolocationProvider):
    """Geolocation provider returning a fixed position.

    With hold=True every request waits until release() is called, which lets
    callers observe what happens while a request is in flight.
    """

    def __init__(self,
                 location: Optional[Location] = None,
                 error: Optional[Exception] = None,
                 delay: float = 0.0,
                 hold: bool = False):
        self.location = location
        self.error = error
        self.delay = delay
        self.hold = hold
        self.request_count = 0
        self._released: Optional[asyncio.Event] = None

    def release(self) -> None:
        """Let held requests resolve."""
        self.hold = False
        if self._released is not None:
            self._released.set()

    async def get_current_position(self) -> Location:
        self.request_count += 1
        if self.hold:
            if self._released is None:
                self._released = asyncio.Event()
            await self._released.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.location is None:
            raise LocationUnavailableError("Position unavailable")
        return self.location


class SimulatedMediaTrack(AbstractMediaTrack):

    def __init__(self, kind: str):
        self.kind = kind
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class SimulatedMediaStream(AbstractMediaStream):

    def __init__(self, audio: bool = True, video: bool = True):
        self.tracks: List[SimulatedMediaTrack] = []
        if audio:
            self.tracks.append(SimulatedMediaTrack("audio"))
        if video:
            self.tracks.append(SimulatedMediaTrack("video"))

    def get_tracks(self) -> List[SimulatedMediaTrack]:
        return list(self.tracks)

    @property
    def all_stopped(self) -> bool:
        return all(track.stopped for track in self.tracks)


class SimulatedMediaRecorder(AbstractMediaRecorder):

    def __init__(self, stream: AbstractMediaStream, fail_on_start: bool = False):
        super().__init__(stream)
        self.fail_on_start = fail_on_start
        self.is_recording = False
        self.start_count = 0
        self.stop_count = 0

    def start(self) -> None:
        if self.fail_on_start:
            raise CapabilityError("Recorder could not start")
        self.start_count += 1
        self.is_recording = True

    def stop(self) -> None:
        self.stop_count += 1
        self.is_recording = False


class SimulatedMediaDevices(AbstractMediaDevices):
    """Microphone/camera access that grants or denies on demand."""

    def __init__(self, grant: bool = True, recorder_fails: bool = False,
                 error: Optional[Exception] = None):
        self.grant = grant
        self.recorder_fails = recorder_fails
        # Raised instead of granting or denying, to mimic a device fault
        self.error = error
        self.request_count = 0
        self.streams: List[SimulatedMediaStream] = []
        self.recorders: List[SimulatedMediaRecorder] = []

    async def get_user_media(self, audio: bool = True, video: bool = True) -> SimulatedMediaStream:
        self.request_count += 1
        if self.error is not None:
            raise self.error
        if not self.grant:
            raise PermissionDeniedError("Permission denied for microphone/camera")
        stream = SimulatedMediaStream(audio=audio, video=video)
        self.streams.append(stream)
        return stream

    def create_recorder(self, stream: AbstractMediaStream) -> SimulatedMediaRecorder:
        recorder = SimulatedMediaRecorder(stream, fail_on_start=self.recorder_fails)
        self.recorders.append(recorder)
        return recorder


class SimulatedTelephony(AbstractTelephony):
    """Dialer that records the numbers handed to it."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.dialed: List[str] = []

    def dial(self, number: str) -> None:
        if self.fail:
            raise CapabilityError(f"Dialer unavailable for tel:{number}")
        self.dialed.append(number)
        logger.info(f"Simulated dial: tel:{number}")
