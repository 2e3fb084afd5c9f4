"""Distress escalation state machine: countdown, cancel, confirm, acknowledge."""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional
from pubsub import pub

from .. import topics
from ..config import AstraPathConfig
from ..models.episode import DistressEpisode, EpisodeStatus, EscalationState
from ..models.events import DistressTriggered
from ..models.session import CompanionSession
from .capability_gate import CapabilityGate
from .emergency_dialer import EmergencyDialer
from .listening_supervisor import ListeningSupervisor
from .recording_manager import RecordingManager
from .timer import IntervalTimer

logger = logging.getLogger(__name__)


class EscalationStateMachine:
    """Drives one distress episode at a time from trigger to acknowledgment.

    Armed -> Counting on a DistressTriggered event. The countdown ticks once
    per interval; reaching zero confirms the episode exactly once, which
    starts a recording (best effort) and dials the emergency number. Cancel is
    only possible while counting. A confirmed episode stays open until
    close() is called.
    """

    def __init__(self,
                 config: AstraPathConfig,
                 session: CompanionSession,
                 gate: CapabilityGate,
                 recorder: RecordingManager,
                 dialer: EmergencyDialer,
                 listening: ListeningSupervisor,
                 timer_factory: Callable[[float, Callable[[], None]], IntervalTimer] = IntervalTimer,
                 topic: str = topics.DISTRESS_TRIGGERED):
        """Initialize escalation state machine.

        Args:
            config: Application configuration
            session: Companion session context (read only)
            gate: Capability gate for location and audio/video
            recorder: Recording manager used on confirmation
            dialer: Emergency dialer used on confirmation
            listening: Supervisor to suspend and resume listening
            timer_factory: Creates the repeating countdown timer
            topic: Pub/sub topic carrying DistressTriggered events
        """
        self.session = session
        self.gate = gate
        self.recorder = recorder
        self.dialer = dialer
        self.listening = listening
        self.timer_factory = timer_factory
        self.topic = topic

        self.countdown_seconds = config.get_countdown_seconds()
        self.tick_interval = float(config.get('escalation.tick_interval_seconds', 1.0))

        self.episode: Optional[DistressEpisode] = None
        self._timer: Optional[IntervalTimer] = None
        self._location_task: Optional[asyncio.Task] = None
        self._escalation_task: Optional[asyncio.Task] = None

        pub.subscribe(self.on_distress_triggered, self.topic)
        logger.info(f"EscalationStateMachine initialized: countdown={self.countdown_seconds}s, "
                    f"tick={self.tick_interval}s")

    @property
    def has_open_episode(self) -> bool:
        return self.episode is not None

    @property
    def state(self) -> EscalationState:
        if self.episode is None:
            return EscalationState.ARMED
        if self.episode.is_counting:
            return EscalationState.COUNTING
        return EscalationState.CONFIRMED

    def on_distress_triggered(self, event: DistressTriggered) -> None:
        """Open a new episode unless one is open or Companion Mode is off."""
        if not self.session.active:
            logger.debug(f"Distress trigger {event.event_id} ignored: companion mode inactive")
            return
        if self.episode is not None:
            logger.info(f"Distress trigger {event.event_id} ignored: episode "
                        f"{self.episode.episode_id} is {self.episode.status.value}")
            return

        episode = DistressEpisode(episode_id=str(uuid.uuid4()),
                                  countdown_remaining=self.countdown_seconds,
                                  trigger_text=event.text)
        self.episode = episode
        logger.warning(f"Distress episode {episode.episode_id} started: {event.text!r}")

        self.listening.stop_listening()
        self._location_task = asyncio.ensure_future(self._acquire_location(episode))
        self._timer = self.timer_factory(self.tick_interval, self.on_tick)
        self._timer.start()

        pub.sendMessage(topics.EPISODE_STARTED, episode=episode)

    async def _acquire_location(self, episode: DistressEpisode) -> None:
        location = await self.gate.request_location()
        if self.episode is not episode or not episode.is_counting:
            logger.info(f"Discarding late location for episode {episode.episode_id} "
                        f"({episode.status.value})")
            return
        if location is None:
            logger.warning("Could not retrieve location for distress signal")
            return
        episode.location = location
        pub.sendMessage(topics.EPISODE_LOCATION, episode=episode)

    def on_tick(self) -> None:
        """Advance the countdown by one step. Extra ticks after zero are ignored."""
        episode = self.episode
        if episode is None or not episode.is_counting:
            logger.debug("Countdown tick ignored: no counting episode")
            return

        episode.countdown_remaining = max(0, episode.countdown_remaining - 1)
        logger.debug(f"Countdown: {episode.countdown_remaining}")
        pub.sendMessage(topics.EPISODE_TICK, episode=episode)

        if episode.countdown_remaining == 0:
            self._confirm(episode)

    def cancel(self) -> bool:
        """Cancel the counting episode.

        Returns:
            True if an episode was cancelled
        """
        episode = self.episode
        if episode is None or not episode.is_counting:
            logger.debug("Cancel ignored: no counting episode")
            return False

        episode.status = EpisodeStatus.CANCELLED
        self._stop_timer()
        self._cancel_location_request()
        self.episode = None
        logger.info(f"Distress episode {episode.episode_id} cancelled at {episode.countdown_remaining}s")
        pub.sendMessage(topics.EPISODE_CANCELLED, episode=episode)

        if self.session.active:
            self.listening.resume_listening()
        return True

    def close(self) -> bool:
        """Acknowledge a confirmed episode, release the recording and resume listening.

        Returns:
            True if an episode was closed
        """
        episode = self.episode
        if episode is None or not episode.is_confirmed:
            logger.debug("Close ignored: no confirmed episode")
            return False

        self.recorder.stop()
        self.episode = None
        logger.info(f"Distress episode {episode.episode_id} closed")
        pub.sendMessage(topics.EPISODE_CLOSED, episode=episode)

        if self.session.active:
            self.listening.resume_listening()
        return True

    def _confirm(self, episode: DistressEpisode) -> None:
        if not episode.is_counting:
            return
        episode.status = EpisodeStatus.CONFIRMED
        episode.confirmed_at = datetime.now()
        self._stop_timer()
        # Zero never waits on a pending location request
        self._cancel_location_request()

        logger.warning(f"Distress episode {episode.episode_id} confirmed, location="
                       f"{episode.location.describe() if episode.location else 'none'}")
        pub.sendMessage(topics.EPISODE_CONFIRMED, episode=episode)
        self._escalation_task = asyncio.ensure_future(self._escalate(episode))

    async def _escalate(self, episode: DistressEpisode) -> None:
        try:
            await self._start_recording(episode)
        except Exception as e:
            logger.error(f"Recording step failed, continuing escalation: {e}", exc_info=True)

        if self.dialer.dial():
            episode.dialed_number = self.dialer.emergency_number

    async def _start_recording(self, episode: DistressEpisode) -> None:
        grant = await self.gate.request_audio_video(keep_stream=True)
        if not grant.granted:
            logger.warning(f"Recording unavailable: {grant.reason}")
        elif self.episode is not episode:
            # Acknowledged while the permission request was pending
            logger.info("Episode closed before recording could start, releasing stream")
            grant.stream.stop_all_tracks()
        else:
            episode.recording_started = self.recorder.start(grant.stream)

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _cancel_location_request(self) -> None:
        if self._location_task is not None and not self._location_task.done():
            self._location_task.cancel()
        self._location_task = None

    async def wait_for_escalation(self) -> None:
        """Wait until the escalation actions of the last confirmation have run."""
        if self._escalation_task is not None:
            await self._escalation_task

    def shutdown(self) -> None:
        """Stop timers and pending requests and stop receiving triggers."""
        self._stop_timer()
        self._cancel_location_request()
        try:
            pub.unsubscribe(self.on_distress_triggered, self.topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        logger.info("EscalationStateMachine shutdown complete")
