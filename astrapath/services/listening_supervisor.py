"""Supervisor keeping one continuous transcription session alive."""

import logging
import uuid
from functools import partial
from typing import Callable, Optional
from pubsub import pub

from .. import topics
from ..capabilities.base import AbstractTranscriptionBackend, AbstractTranscriptionSession
from ..capabilities.errors import InvalidStateError, TranscriptionError
from ..config import AstraPathConfig
from ..detection.classifier import KeywordClassifier
from ..models.events import DistressTriggered, TranscriptEvent
from ..models.listening import SupervisorState, StopIntent
from ..models.session import CompanionSession

logger = logging.getLogger(__name__)

START_FAILURE_NOTICE = "Could not start Safe Companion mode. Please try again."
PERMISSION_NOTICE = "Microphone permission denied. Safe Companion mode has been disabled."

RUNNING_STATES = frozenset({
    SupervisorState.STARTING,
    SupervisorState.LISTENING,
    SupervisorState.RESTARTING,
})


class ListeningSupervisor:
    """Owns the transcription session while Companion Mode is active.

    The underlying session ends on its own now and then (silence, transient
    capture errors); those ends are followed by an immediate restart. Ends we
    caused through stop_listening() are recognised by the stop intent and
    never restarted.
    """

    def __init__(self,
                 config: AstraPathConfig,
                 backend: AbstractTranscriptionBackend,
                 session: CompanionSession,
                 classifier: KeywordClassifier,
                 on_fatal_error: Callable[[str], None],
                 is_episode_open: Optional[Callable[[], bool]] = None,
                 topic: str = topics.DISTRESS_TRIGGERED):
        """Initialize listening supervisor.

        Args:
            config: Application configuration
            backend: Transcription capability
            session: Companion session context (read only)
            classifier: Keyword classifier for final transcripts
            on_fatal_error: Called with a notice when the session must be deactivated
            is_episode_open: Returns True while a distress episode is open
            topic: Pub/sub topic for DistressTriggered events
        """
        self.backend = backend
        self.session = session
        self.classifier = classifier
        self.on_fatal_error = on_fatal_error
        self.is_episode_open = is_episode_open or (lambda: False)
        self.topic = topic

        self.language = config.get('transcription.language', 'en-US')
        self.continuous = config.get('transcription.continuous', True)
        self.interim_results = config.get('transcription.interim_results', True)

        self.state = SupervisorState.IDLE
        self._handle: Optional[AbstractTranscriptionSession] = None
        self._stop_intent = StopIntent.NONE
        self._resume_pending = False

        self.restart_count = 0
        self.trigger_count = 0

        logger.info(f"ListeningSupervisor initialized (language={self.language})")

    @property
    def stop_intent(self) -> StopIntent:
        return self._stop_intent

    @property
    def is_listening(self) -> bool:
        return self.state in RUNNING_STATES

    def start_listening(self) -> bool:
        """Open (or reopen) the transcription session.

        Returns:
            True if a session is running or will be started once a pending
            stop has been observed
        """
        if not self.session.active:
            logger.debug("Companion session inactive, not starting listening")
            return False

        if self._stop_intent is StopIntent.STOPPING:
            # The termination of our own stop has not arrived yet; starting now
            # would be rejected as a duplicate start and then swallowed.
            logger.debug("Stop still in flight, deferring start until it is observed")
            self._resume_pending = True
            return True

        if self.state in RUNNING_STATES:
            logger.debug(f"Already listening (state={self.state.value})")
            return True

        return self._start_handle(SupervisorState.STARTING)

    def resume_listening(self) -> bool:
        """Resume after a distress episode has closed."""
        logger.info("Resuming listening")
        return self.start_listening()

    def stop_listening(self) -> None:
        """Intentionally stop the session. Its termination will not restart it."""
        self._resume_pending = False

        if self._handle is None or self.state not in RUNNING_STATES:
            logger.debug(f"Nothing to stop (state={self.state.value})")
            return

        logger.info("Stopping listening")
        # Intent must be recorded before the stop is issued
        self._stop_intent = StopIntent.STOPPING
        self._set_state(SupervisorState.STOPPED)
        try:
            self._handle.stop()
        except Exception as e:
            logger.warning(f"Error stopping transcription session: {e}")

    def shutdown(self) -> None:
        """Stop listening for good."""
        self.stop_listening()
        logger.info(f"ListeningSupervisor shutdown: restarts={self.restart_count}, triggers={self.trigger_count}")

    def _create_handle(self) -> AbstractTranscriptionSession:
        handle = self.backend.create_session(continuous=self.continuous,
                                             interim_results=self.interim_results,
                                             language=self.language)
        handle.on_result = partial(self._on_result, handle)
        handle.on_error = partial(self._on_error, handle)
        handle.on_end = partial(self._on_end, handle)
        return handle

    def _start_handle(self, state: SupervisorState) -> bool:
        if self._handle is None:
            self._handle = self._create_handle()

        # A fresh run gets a fresh intent
        self._stop_intent = StopIntent.NONE
        self._set_state(state)

        try:
            self._handle.start()
        except InvalidStateError:
            logger.debug("Transcription session already started, ignoring")
        except Exception as e:
            logger.error(f"Failed to start speech recognition: {e}")
            self._set_state(SupervisorState.STOPPED)
            self.on_fatal_error(START_FAILURE_NOTICE)
            return False

        self._set_state(SupervisorState.LISTENING)
        return True

    def _on_result(self, handle: AbstractTranscriptionSession, event: TranscriptEvent) -> None:
        if handle is not self._handle or self.state is not SupervisorState.LISTENING:
            return
        if not event.is_final:
            return
        matched = self.classifier.matched_keywords(event.text)
        if not matched:
            return

        if self.is_episode_open():
            logger.debug(f"Keyword match ignored, episode already open: {event.text!r}")
            return

        self.trigger_count += 1
        logger.warning(f"Distress keyword(s) {matched} detected in transcript: {event.text!r}")
        pub.sendMessage(self.topic, event=DistressTriggered(event_id=str(uuid.uuid4()), text=event.text))

    def _on_error(self, handle: AbstractTranscriptionSession, error: TranscriptionError) -> None:
        if handle is not self._handle:
            return

        if error.is_recoverable:
            logger.debug(f"Recoverable speech recognition error: {error.code.value}")
            return

        if error.is_permission_error:
            logger.error(f"Speech recognition permission error: {error.code.value}")
            self.stop_listening()
            self.on_fatal_error(PERMISSION_NOTICE)
            return

        # Left to the end -> restart path
        logger.error(f"Speech recognition error: {error.code.value} {error.message or ''}")

    def _on_end(self, handle: AbstractTranscriptionSession) -> None:
        if handle is not self._handle:
            logger.debug("Ignoring end of a stale transcription session")
            return

        if self._stop_intent is StopIntent.STOPPING:
            self._stop_intent = StopIntent.STOPPED
            logger.debug("Observed end of intentional stop")
            if self._resume_pending:
                self._resume_pending = False
                if self.session.active:
                    self._start_handle(SupervisorState.STARTING)
            return

        if self.state not in RUNNING_STATES:
            return

        if not self.session.active:
            self._set_state(SupervisorState.STOPPED)
            return

        self.restart_count += 1
        logger.info(f"Transcription session ended on its own, restarting (restart #{self.restart_count})")
        self._start_handle(SupervisorState.RESTARTING)

    def _set_state(self, state: SupervisorState) -> None:
        if state is self.state:
            return
        logger.debug(f"Listening state: {self.state.value} -> {state.value}")
        self.state = state
        pub.sendMessage(topics.LISTENING_STATE, state=state)
