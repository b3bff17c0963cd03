"""Segment rotation timer."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SegmentScheduler:
    """Single-shot timer re-armed once per segment.

    The callback runs on the event loop after ``segment_duration_seconds``.
    At most one timer is armed at a time.
    """

    def __init__(self, segment_duration_seconds: float):
        if segment_duration_seconds <= 0:
            raise ValueError(f"segment_duration_seconds must be positive, got {segment_duration_seconds}")
        self.segment_duration_seconds = segment_duration_seconds
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def armed(self) -> bool:
        return self._timer is not None

    def arm(self, on_expire: Callable[[], None]) -> None:
        """Start the timer. Must be called from within the running event loop."""
        if self._timer is not None:
            logger.warning("Scheduler armed while already armed, cancelling previous timer")
            self.cancel()

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.segment_duration_seconds, self._fire, on_expire)
        logger.debug(f"Scheduler armed for {self.segment_duration_seconds}s")

    def cancel(self) -> None:
        """Cancel the pending timer; no-op when nothing is armed."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        logger.debug("Scheduler cancelled")

    def _fire(self, on_expire: Callable[[], None]) -> None:
        self._timer = None
        on_expire()
