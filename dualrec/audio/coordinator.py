"""Opens and closes the two capture streams of one segment."""

import asyncio
import logging
from typing import Optional

from .provider import CaptureHandle, CaptureKind, CaptureProvider
from .wav_header import build_wav_header
from ..exceptions import InputCaptureFailed
from ..models.segment import SegmentHandles
from ..storage.file_manager import FileManager

logger = logging.getLogger(__name__)


class CaptureCoordinator:
    """Wraps a CaptureProvider and applies the degrade-on-output-failure policy.

    Input (microphone) is mandatory: if it cannot be opened the segment is not
    created. Output (system audio) is best-effort: if it cannot be opened a
    zero-length WAV placeholder is written in its place so every segment
    always has two parseable files.
    """

    def __init__(self,
                 provider: CaptureProvider,
                 file_manager: FileManager,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 bit_depth: int = 16,
                 settle_delay_seconds: float = 2.0):
        """Initialize capture coordinator.

        Args:
            provider: Capture provider used to open streams
            file_manager: File primitives for placeholder writes
            sample_rate: Sample rate declared in placeholder files
            channels: Channel count declared in placeholder files
            bit_depth: Bits per sample declared in placeholder files
            settle_delay_seconds: Wait after closing before file sizes are trusted
        """
        self.provider = provider
        self.file_manager = file_manager
        self.sample_rate = sample_rate
        self.channels = channels
        self.bit_depth = bit_depth
        self.settle_delay_seconds = settle_delay_seconds

    async def open_segment(self, segment_id: str, input_path: str, output_path: str) -> SegmentHandles:
        """Open input and output captures for a segment.

        Args:
            segment_id: Segment identifier (for logging)
            input_path: Target file for the microphone stream
            output_path: Target file for the system audio stream

        Returns:
            Live handles for the segment

        Raises:
            InputCaptureFailed: if the input stream could not be opened
        """
        try:
            input_handle = await self.provider.start_capture(CaptureKind.INPUT, input_path)
        except Exception as e:
            logger.error(f"Input capture failed for {segment_id}: {e}")
            raise InputCaptureFailed(f"Input capture failed for {segment_id}: {e}") from e

        if input_handle is None:
            logger.error(f"Input capture unavailable for {segment_id}")
            raise InputCaptureFailed(f"Input capture unavailable for {segment_id}")

        output_handle = await self._open_output(segment_id, output_path)
        if output_handle is None:
            try:
                self.write_placeholder(output_path)
            except Exception:
                # Without the placeholder the file pair is incomplete; release input
                await self._stop_handle(input_handle, "input", segment_id)
                raise

        logger.info(f"Opened segment {segment_id} (output audio: {output_handle is not None})")
        output_channels = output_handle.channels if output_handle is not None else None
        return SegmentHandles(
            input_handle=input_handle,
            output_handle=output_handle,
            has_output_audio=output_handle is not None,
            input_channels=input_handle.channels or self.channels,
            output_channels=output_channels or self.channels,
        )

    async def _open_output(self, segment_id: str, output_path: str) -> Optional[CaptureHandle]:
        try:
            handle = await self.provider.start_capture(CaptureKind.OUTPUT, output_path)
        except Exception as e:
            logger.warning(f"Output capture failed for {segment_id}, continuing without system audio: {e}")
            return None

        if handle is None:
            logger.warning(f"Output capture unavailable for {segment_id}, continuing without system audio")
        return handle

    def write_placeholder(self, file_path: str) -> str:
        """Write an empty, valid WAV file. Safe to call repeatedly."""
        header = build_wav_header(self.sample_rate, self.channels, self.bit_depth)
        return self.file_manager.write_file(file_path, header)

    async def close_segment(self, handles: Optional[SegmentHandles], segment_id: str = "") -> None:
        """Stop every present handle. Never raises."""
        if handles is None:
            return
        await self._stop_handle(handles.input_handle, "input", segment_id)
        if handles.output_handle is not None:
            await self._stop_handle(handles.output_handle, "output", segment_id)

    async def _stop_handle(self, handle: CaptureHandle, kind: str, segment_id: str) -> None:
        try:
            await handle.stop()
        except Exception as e:
            logger.warning(f"Error stopping {kind} capture for {segment_id}: {e}")

    async def settle(self) -> None:
        """Wait for encoders to finish writing after stop()."""
        if self.settle_delay_seconds > 0:
            await asyncio.sleep(self.settle_delay_seconds)
