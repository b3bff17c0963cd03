"""Publishes session and segment lifecycle events using pubsub.pub."""

import logging
from pubsub import pub

from ..models.events import SegmentEvent, SessionEvent

logger = logging.getLogger(__name__)

SESSION_TOPIC = "recording.session"
SEGMENT_TOPIC = "recording.segment"


class SessionEventPublisher:
    """Publishes lifecycle events for pub/sub subscribers (CLI, UI, loggers)."""

    def __init__(self, session_topic: str = SESSION_TOPIC, segment_topic: str = SEGMENT_TOPIC):
        """Initialize event publisher.

        Args:
            session_topic: Topic for SessionEvent messages
            segment_topic: Topic for SegmentEvent messages
        """
        self.session_topic = session_topic
        self.segment_topic = segment_topic

    def publish_session_event(self, event: SessionEvent) -> None:
        self._send(self.session_topic, event)

    def publish_segment_event(self, event: SegmentEvent) -> None:
        self._send(self.segment_topic, event)

    def _send(self, topic: str, event) -> None:
        # A misbehaving subscriber must not break recording
        try:
            pub.sendMessage(topic, event=event)
        except Exception as e:
            logger.warning(f"Subscriber error on {topic}: {e}")
