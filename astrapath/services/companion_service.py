"""Companion Mode controller wiring the distress detection core together."""

import logging
from datetime import datetime
from typing import Optional
from pubsub import pub

from .. import topics
from ..capabilities.base import (
    AbstractTranscriptionBackend,
    AbstractMediaDevices,
    AbstractGeolocationProvider,
    AbstractTelephony,
)
from ..config import AstraPathConfig
from ..detection.classifier import KeywordClassifier
from ..models.events import NoticeLevel
from ..models.session import CompanionSession
from .capability_gate import CapabilityGate
from .emergency_dialer import EmergencyDialer
from .escalation_service import EscalationStateMachine
from .listening_supervisor import ListeningSupervisor
from .notices import NoticePublisher
from .recording_manager import RecordingManager
from .sos_service import SosService
from .timer import IntervalTimer

logger = logging.getLogger(__name__)

PERMISSIONS_REQUIRED_NOTICE = "Microphone and Camera permissions are required for Safe Companion mode."


class CompanionController:
    """Single authority over the CompanionSession.

    Builds the supervisor, the escalation state machine and the escalation
    actions around one shared session context, and is the only place that
    flips the session on or off.
    """

    def __init__(self,
                 config: AstraPathConfig,
                 transcription_backend: AbstractTranscriptionBackend,
                 media_devices: AbstractMediaDevices,
                 geolocation: AbstractGeolocationProvider,
                 telephony: AbstractTelephony,
                 timer_factory=IntervalTimer):
        """Initialize companion controller.

        Args:
            config: Application configuration
            transcription_backend: Continuous speech transcription capability
            media_devices: Microphone/camera capability
            geolocation: One-shot geolocation capability
            telephony: Dialer capability
            timer_factory: Creates the countdown timer (overridable in tests)
        """
        self.config = config
        self.session = CompanionSession()
        self.notices = NoticePublisher("companion")
        self.consent_pending = False

        self.classifier = KeywordClassifier(config.get_keywords())
        self.gate = CapabilityGate(media_devices, geolocation,
                                   location_timeout=config.get('geolocation.timeout_seconds', 10.0))
        self.recorder = RecordingManager(media_devices)
        self.dialer = EmergencyDialer(telephony, str(config.get('escalation.emergency_number', '112')))

        self.listening = ListeningSupervisor(
            config,
            transcription_backend,
            self.session,
            self.classifier,
            on_fatal_error=self._on_listening_fatal,
            is_episode_open=lambda: self.escalation.has_open_episode,
        )
        self.escalation = EscalationStateMachine(
            config,
            self.session,
            self.gate,
            self.recorder,
            self.dialer,
            self.listening,
            timer_factory=timer_factory,
        )
        self.sos = SosService(self.gate, NoticePublisher("sos"))

        logger.info(f"CompanionController initialized with keywords: {self.classifier.keywords}")

    def toggle(self) -> None:
        """Arm or disarm Companion Mode. Arming first asks for consent."""
        if self.session.active:
            self.deactivate()
        else:
            self.request_activation()

    def request_activation(self) -> None:
        """Show the informational consent step."""
        if self.session.active:
            logger.debug("Companion mode already active")
            return
        self.consent_pending = True
        logger.info("Companion mode consent requested")
        pub.sendMessage(topics.COMPANION_CONSENT, session=self.session)

    def decline_consent(self) -> None:
        self.consent_pending = False
        logger.info("Companion mode consent declined")

    async def confirm_consent(self) -> bool:
        """Accept the consent step and acquire microphone+camera access.

        Returns:
            True if Companion Mode was activated
        """
        if not self.consent_pending:
            logger.debug("No consent pending")
            return False
        self.consent_pending = False

        grant = await self.gate.request_audio_video()
        if not grant.granted:
            self.notices.publish(PERMISSIONS_REQUIRED_NOTICE, NoticeLevel.ERROR)
            return False

        self.activate()
        return True

    def activate(self) -> None:
        """Mark the session active and start listening."""
        if self.session.active:
            return
        self.session.active = True
        self.session.activated_at = datetime.now()
        self.session.deactivation_reason = None
        logger.info("Companion mode activated")
        pub.sendMessage(topics.COMPANION_STATE, session=self.session)
        self.listening.start_listening()

    def deactivate(self, reason: Optional[str] = None) -> None:
        """Mark the session inactive and stop listening.

        An episode already in progress is left to finish; only future
        listening is prevented.

        Args:
            reason: Notice shown to the user, if the deactivation was forced
        """
        if not self.session.active:
            return
        self.session.active = False
        self.session.deactivated_at = datetime.now()
        self.session.deactivation_reason = reason
        self.listening.stop_listening()
        logger.info(f"Companion mode deactivated (reason={reason})")
        pub.sendMessage(topics.COMPANION_STATE, session=self.session)
        if reason:
            self.notices.publish(reason, NoticeLevel.ERROR)

    def _on_listening_fatal(self, message: str) -> None:
        self.deactivate(reason=message)

    def shutdown(self) -> None:
        """Tear down every component."""
        logger.info("Shutting down companion controller...")
        self.listening.shutdown()
        self.escalation.shutdown()
        self.recorder.stop()
        self.sos.close()
        logger.info("Companion controller shutdown complete")
