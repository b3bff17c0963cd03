"""Data models for the dualrec package."""

from .segment import SegmentHandles, SegmentRecord
from .session import AggregateReport, SessionState, SessionStatus
from .events import SegmentEvent, SessionEvent

__all__ = [
    "SegmentHandles",
    "SegmentRecord",
    "AggregateReport",
    "SessionState",
    "SessionStatus",
    "SegmentEvent",
    "SessionEvent",
]
