"""Event models published on the session pub/sub topics."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    session_id: str
    event_type: str  # "started", "stopped", "reset", "error"
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SegmentEvent:
    """Segment lifecycle event."""
    session_id: str
    segment_id: str
    event_type: str  # "started", "closed"
    index: int
    has_output_audio: bool = False
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
