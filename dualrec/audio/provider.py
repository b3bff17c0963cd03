"""Capture provider contract consumed by the recording core.

A provider opens one live stream per call and encodes it to ``target_path``.
``start_capture`` returns ``None`` (rather than raising) when the requested
source is structurally unavailable, e.g. no permission or no loopback device.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional


class CaptureKind(Enum):
    """Which side of the conversation a stream captures."""
    INPUT = "input"  # Microphone
    OUTPUT = "output"  # System / environment audio


class CaptureHandle(ABC):
    """Opaque live resource for one open stream."""

    # Channels actually captured, when the device caps the requested count
    channels: Optional[int] = None

    @abstractmethod
    async def stop(self) -> None:
        """Flush and close the stream. Called exactly once."""


class CaptureProvider(ABC):
    """Source of live input/output audio streams."""

    @property
    def ready(self) -> bool:
        """Whether the provider can currently be invoked."""
        return True

    @abstractmethod
    async def start_capture(self, kind: CaptureKind, target_path: str) -> Optional[CaptureHandle]:
        """Open a stream of the given kind writing to target_path.

        Returns:
            A live handle, or None if the source is unavailable
        """

    async def list_devices(self) -> List[Dict[str, Any]]:
        """List capture devices known to the provider."""
        return []
