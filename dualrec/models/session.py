"""Session-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .segment import SegmentRecord


class SessionState(Enum):
    """Lifecycle state of a recording session."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"


@dataclass
class SessionStatus:
    """Externally visible status of a recording session."""
    is_recording: bool
    session_id: Optional[str]
    segment_count: int
    state: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_recording": self.is_recording,
            "session_id": self.session_id,
            "segment_count": self.segment_count,
            "state": self.state,
        }


@dataclass
class AggregateReport:
    """Totals over all finalized segments of a session."""
    session_id: Optional[str]
    segments: List[SegmentRecord] = field(default_factory=list)

    @property
    def total_segments(self) -> int:
        return len(self.segments)

    @property
    def total_input_size(self) -> int:
        return sum(s.input_size for s in self.segments)

    @property
    def total_output_size(self) -> int:
        return sum(s.output_size for s in self.segments)

    @property
    def total_duration(self) -> float:
        # Sum of segment durations, not wall-clock length: rotation leaves gaps
        return sum(s.duration for s in self.segments)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "session_id": self.session_id,
            "total_segments": self.total_segments,
            "total_input_size": self.total_input_size,
            "total_output_size": self.total_output_size,
            "total_duration": self.total_duration,
            "segments": [s.to_dict() for s in self.segments],
            "input_files": [s.input_file for s in self.segments],
            "output_files": [s.output_file for s in self.segments],
        }
