"""Services layer for dualrec session management."""

from .scheduler import SegmentScheduler
from .event_publisher import SessionEventPublisher, SESSION_TOPIC, SEGMENT_TOPIC
from .recording_session import RecordingSession
from .command_handler import RecordingCommandHandler

__all__ = [
    "SegmentScheduler",
    "SessionEventPublisher",
    "SESSION_TOPIC",
    "SEGMENT_TOPIC",
    "RecordingSession",
    "RecordingCommandHandler",
]
