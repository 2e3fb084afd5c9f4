"""Audio/video capture started on escalation."""

import logging
from typing import Optional

from ..capabilities.base import AbstractMediaDevices, AbstractMediaRecorder, AbstractMediaStream

logger = logging.getLogger(__name__)


class RecordingManager:
    """Owns at most one recording (stream + recorder) at a time."""

    def __init__(self, media_devices: AbstractMediaDevices):
        """Initialize recording manager.

        Args:
            media_devices: Capability used to create recorders
        """
        self.media_devices = media_devices
        self._stream: Optional[AbstractMediaStream] = None
        self._recorder: Optional[AbstractMediaRecorder] = None
        self.is_recording = False

    @property
    def has_recording(self) -> bool:
        return self._stream is not None

    def start(self, stream: AbstractMediaStream) -> bool:
        """Start recording the given stream.

        The stream is owned from here on, even if the recorder fails to start,
        so that stop() still releases its tracks.

        Returns:
            True if the recorder is running
        """
        if self._stream is not None:
            logger.warning("Recording already in progress, releasing previous stream")
            self.stop()

        self._stream = stream
        try:
            self._recorder = self.media_devices.create_recorder(stream)
            self._recorder.start()
        except Exception as e:
            logger.error(f"Could not start recording: {e}")
            return False

        self.is_recording = True
        logger.info("Recording started")
        return True

    def stop(self) -> None:
        """Stop the recorder and release every media track. No-op without a recording."""
        if self._stream is None:
            logger.debug("No recording to stop")
            return

        if self._recorder is not None and self.is_recording:
            try:
                self._recorder.stop()
            except Exception as e:
                logger.warning(f"Error stopping recorder: {e}")

        for track in self._stream.get_tracks():
            try:
                track.stop()
            except Exception as e:
                logger.warning(f"Error stopping {track.kind} track: {e}")

        self._stream = None
        self._recorder = None
        self.is_recording = False
        logger.info("Recording stopped and media tracks released")
