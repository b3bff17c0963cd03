"""Segment-related data models."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..audio.provider import CaptureHandle


@dataclass
class SegmentHandles:
    """Live capture handles for the currently open segment."""
    input_handle: CaptureHandle
    output_handle: Optional[CaptureHandle] = None
    has_output_audio: bool = False
    input_channels: int = 1
    output_channels: int = 1


@dataclass
class SegmentRecord:
    """One fixed-duration slice of a recording session."""
    segment_id: str
    index: int
    input_file: str
    output_file: str
    start_time: float
    has_output_audio: bool = False
    end_time: Optional[float] = None
    duration: float = 0.0
    input_size: int = 0
    output_size: int = 0
    input_duration: float = 0.0  # Estimated from file size
    output_duration: float = 0.0
    input_channels: int = 1
    output_channels: int = 1
    handles: Optional[SegmentHandles] = field(default=None, repr=False, compare=False)

    @staticmethod
    def make_segment_id(session_id: str, index: int) -> str:
        return f"{session_id}_segment_{index:03d}"

    @property
    def is_finalized(self) -> bool:
        return self.end_time is not None

    def detach_handles(self) -> Optional[SegmentHandles]:
        """Detach live handles from the record; the caller owns them afterwards."""
        handles, self.handles = self.handles, None
        return handles

    def finalize(self, end_time: float, input_size: int, output_size: int,
                 input_duration: float = 0.0, output_duration: float = 0.0) -> None:
        """Record close-time stats. A record is finalized exactly once."""
        if self.is_finalized:
            raise RuntimeError(f"Segment {self.segment_id} already finalized")
        self.end_time = end_time
        self.duration = max(0.0, end_time - self.start_time)
        self.input_size = input_size
        self.output_size = output_size
        self.input_duration = input_duration
        self.output_duration = output_duration

    def to_dict(self) -> Dict[str, Any]:
        """Plain snapshot of the record, without live handles."""
        return {
            "segment_id": self.segment_id,
            "index": self.index,
            "input_file": self.input_file,
            "output_file": self.output_file,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "input_size": self.input_size,
            "output_size": self.output_size,
            "input_duration": self.input_duration,
            "output_duration": self.output_duration,
            "has_output_audio": self.has_output_audio,
            "input_channels": self.input_channels,
            "output_channels": self.output_channels,
        }
