"""Notice publisher module for pub/sub event publishing."""

import logging
from pubsub import pub

from .. import topics
from ..models.events import Notice, NoticeLevel

logger = logging.getLogger(__name__)


class NoticePublisher:
    """Publishes user-visible notices using pubsub.pub."""

    def __init__(self, source: str, topic: str = topics.NOTICE):
        """Initialize notice publisher.

        Args:
            source: Name of the component raising notices
            topic: Pub/sub topic name for notices
        """
        self.source = source
        self.topic = topic

    def publish(self, message: str, level: NoticeLevel = NoticeLevel.WARNING) -> Notice:
        """Publish a one-line notice.

        Args:
            message: Text shown to the user
            level: Severity of the notice

        Returns:
            The published Notice
        """
        notice = Notice(message=message, level=level, source=self.source)
        pub.sendMessage(self.topic, notice=notice)
        logger.info(f"Notice from {self.source}: {message}")
        return notice
