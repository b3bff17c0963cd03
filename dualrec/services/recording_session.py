"""Segmented dual-stream recording session state machine."""

import asyncio
import json
import logging
import time
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..audio.coordinator import CaptureCoordinator
from ..audio.provider import CaptureProvider
from ..audio.wav_header import calculate_duration
from ..config import RecordingConfig
from ..exceptions import (
    AlreadyRecording,
    InvalidParameter,
    NoCaptureContext,
    NonSerializableResult,
    OperationInProgress,
)
from ..models.events import SegmentEvent, SessionEvent
from ..models.segment import SegmentRecord
from ..models.session import AggregateReport, SessionState, SessionStatus
from ..storage.file_manager import FileManager
from .event_publisher import SessionEventPublisher
from .scheduler import SegmentScheduler

logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return uuid.uuid4().hex


class RecordingSession:
    """Owns one recording session: segment lifecycle, rotation and the final report.

    All methods run on a single asyncio event loop. ``start()`` and ``stop()``
    never interleave: a call arriving while another transition is in flight
    fails with OperationInProgress. Timer-driven rotation re-checks the state
    before every step, and ``stop()`` cancels the timer and waits for any
    rotation already running before it touches the active segment.
    """

    def __init__(self,
                 config: RecordingConfig,
                 file_manager: FileManager,
                 publisher: Optional[SessionEventPublisher] = None,
                 id_factory: Callable[[], str] = _new_session_id,
                 clock: Callable[[], float] = time.time):
        """Initialize recording session.

        Args:
            config: Validated recording parameters
            file_manager: Working directory and file primitives
            publisher: Lifecycle event publisher
            id_factory: Generates session ids
            clock: Returns the current time in epoch seconds
        """
        self.config = config
        self.file_manager = file_manager
        self.publisher = publisher or SessionEventPublisher()
        self._id_factory = id_factory
        self._clock = clock

        self.provider: Optional[CaptureProvider] = None
        self.coordinator: Optional[CaptureCoordinator] = None
        self.scheduler = SegmentScheduler(config.segment_duration_seconds)

        # Session state
        self.state = SessionState.IDLE
        self.session_id: Optional[str] = None
        self.segment_index = 0
        self.segments: List[SegmentRecord] = []
        self.last_report: Optional[Dict[str, Any]] = None
        self.last_error: Optional[str] = None

        self._transition_in_flight = False
        self._rotation_task: Optional[asyncio.Task] = None
        # Bumped by reset(); work begun under an older generation must not commit
        self._generation = 0

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    def set_capture_context(self, provider: Optional[CaptureProvider]) -> None:
        """Attach the capture provider used by subsequent sessions."""
        if self.state is not SessionState.IDLE:
            raise OperationInProgress("Cannot change capture context while recording")

        self.provider = provider
        if provider is None:
            self.coordinator = None
            logger.info("Capture context cleared")
            return

        self.coordinator = CaptureCoordinator(
            provider,
            self.file_manager,
            sample_rate=self.config.sample_rate,
            channels=self.config.channels,
            bit_depth=self.config.bit_depth,
            settle_delay_seconds=self.config.settle_delay_seconds,
        )
        logger.info(f"Capture context set: {type(provider).__name__}")

    @property
    def is_recording(self) -> bool:
        return self.state is SessionState.RECORDING

    async def start(self) -> Dict[str, Any]:
        """Start a new session and open its first segment.

        Returns:
            Dict with success flag and the new session id

        Raises:
            OperationInProgress: another start/stop is in flight
            AlreadyRecording: the session is already recording
            NoCaptureContext: no ready capture provider is attached
            InputCaptureFailed: the microphone stream could not be opened
        """
        if self._transition_in_flight or self.state is SessionState.STOPPING:
            raise OperationInProgress("Another start/stop is in progress")
        if self.state is SessionState.RECORDING:
            raise AlreadyRecording(f"Already recording session {self.session_id}")
        if self.provider is None or self.coordinator is None:
            raise NoCaptureContext("Capture context not set - call set_capture_context() first")
        if not self.provider.ready:
            raise NoCaptureContext("Capture provider is not ready")

        self._transition_in_flight = True
        generation = self._generation
        try:
            self.session_id = self._id_factory()
            self.segment_index = 0
            self.segments = []
            self.last_error = None
            self.file_manager.ensure_dir(self.file_manager.data_dir)

            logger.info(f"Starting segmented dual recording {self.session_id} "
                        f"({self.config.segment_duration_seconds}s segments)")

            if await self._open_next_segment(generation) is None:
                raise OperationInProgress("Recording was reset while starting")
            self.state = SessionState.RECORDING
            self._arm_scheduler()

        except Exception as e:
            logger.error(f"Error starting recording: {e}")
            await self._abort_start()
            raise
        finally:
            self._transition_in_flight = False

        self.publisher.publish_session_event(SessionEvent(session_id=self.session_id, event_type="started"))
        return self._ensure_serializable({
            "success": True,
            "session_id": self.session_id,
            "started_at": datetime.now().isoformat(),
        })

    async def stop(self) -> Dict[str, Any]:
        """Stop recording, finalize the active segment and return the aggregate report.

        Returns:
            The report dict, or {"success": False, "error": ...} when not recording
        """
        if self._transition_in_flight or self.state is SessionState.STOPPING:
            raise OperationInProgress("Another start/stop is in progress")
        if self.state is not SessionState.RECORDING:
            logger.info("Stop requested but no recording in progress")
            return {"success": False, "error": "Not recording"}

        self._transition_in_flight = True
        self.state = SessionState.STOPPING
        session_id = self.session_id
        generation = self._generation
        try:
            logger.info(f"Stopping segmented dual recording {session_id} ({len(self.segments)} segments)")
            self.scheduler.cancel()
            await self._wait_for_rotation()
            await self._close_active_segment()
            if self._generation != generation:
                raise OperationInProgress("Recording was reset while stopping")

            report = self._build_report()
            self._ensure_serializable(report)
            self.last_report = report

            logger.info(
                f"Recording stopped: {report['total_segments']} segments, "
                f"{report['total_input_size'] / (1024 * 1024):.2f}MB total input, "
                f"{report['total_output_size'] / (1024 * 1024):.2f}MB total output"
            )
        finally:
            self.scheduler.cancel()
            self._clear_state()
            self._transition_in_flight = False

        self.publisher.publish_session_event(SessionEvent(
            session_id=session_id,
            event_type="stopped",
            metadata={"report": report},
        ))
        return report

    async def reset(self) -> None:
        """Return to a clean Idle state from any state. Never raises."""
        logger.info("Resetting recording state...")
        if self.state is SessionState.RECORDING and not self._transition_in_flight:
            try:
                await self.stop()
            except Exception as e:
                logger.warning(f"Error stopping recording during reset: {e}")

        self._generation += 1
        self.scheduler.cancel()
        try:
            await self._release_open_handles()
        except Exception as e:
            logger.warning(f"Error releasing capture handles during reset: {e}")
        self._clear_state()

        self.publisher.publish_session_event(SessionEvent(session_id="", event_type="reset"))
        logger.info("Recording state reset")

    def status(self) -> Dict[str, Any]:
        return SessionStatus(
            is_recording=self.is_recording,
            session_id=self.session_id,
            segment_count=len(self.segments),
            state=self.state.value,
        ).to_dict()

    async def list_devices(self) -> List[Dict[str, Any]]:
        """List devices known to the attached capture provider."""
        if self.provider is None:
            raise NoCaptureContext("Capture context not set")
        devices = await self.provider.list_devices()
        return self._ensure_serializable(devices)

    def cleanup_files(self, max_age_days: Optional[int] = None) -> int:
        """Remove segment files from the working directory; refused while active.

        Args:
            max_age_days: Only remove files older than this many days. None removes all.
        """
        if self.state is not SessionState.IDLE or self._transition_in_flight:
            raise OperationInProgress("Cannot remove recordings while a session is active")
        if max_age_days is None:
            return self.file_manager.cleanup_recordings()
        if max_age_days < 0:
            raise InvalidParameter(f"max_age_days must be >= 0 (got {max_age_days})")
        return self.file_manager.cleanup_old_recordings(max_age_days)

    def storage_stats(self) -> Dict[str, Any]:
        """Usage of the working directory."""
        self.file_manager.ensure_dir(self.file_manager.data_dir)
        return self._ensure_serializable(self.file_manager.get_storage_stats())

    # ------------------------------------------------------------------
    # Segment lifecycle
    # ------------------------------------------------------------------

    def _active_segment(self) -> Optional[SegmentRecord]:
        if self.segments and not self.segments[-1].is_finalized:
            return self.segments[-1]
        return None

    async def _open_next_segment(self, generation: int,
                                 require_state: Optional[SessionState] = None) -> Optional[SegmentRecord]:
        """Open the next segment, or discard it if the session moved on meanwhile.

        Returns:
            The new record, or None when reset() ran or the state left
            require_state while the streams were opening
        """
        segment_id = SegmentRecord.make_segment_id(self.session_id, self.segment_index)
        input_file, output_file = self.file_manager.segment_paths(segment_id)

        logger.info(f"Starting segment {self.segment_index + 1}: {segment_id}")
        handles = await self.coordinator.open_segment(segment_id, input_file, output_file)

        if self._generation != generation or (require_state is not None and self.state is not require_state):
            logger.info(f"Session changed while opening {segment_id}, discarding it")
            await self.coordinator.close_segment(handles, segment_id)
            self.file_manager.remove_files(input_file, output_file)
            return None

        record = SegmentRecord(
            segment_id=segment_id,
            index=self.segment_index,
            input_file=input_file,
            output_file=output_file,
            start_time=self._clock(),
            has_output_audio=handles.has_output_audio,
            input_channels=handles.input_channels,
            output_channels=handles.output_channels,
            handles=handles,
        )
        self.segments.append(record)
        self.segment_index += 1

        self.publisher.publish_segment_event(SegmentEvent(
            session_id=self.session_id,
            segment_id=segment_id,
            event_type="started",
            index=record.index,
            has_output_audio=record.has_output_audio,
        ))
        return record

    async def _close_active_segment(self) -> Optional[SegmentRecord]:
        record = self._active_segment()
        if record is None:
            return None

        logger.info(f"Stopping segment {record.segment_id}")
        await self.coordinator.close_segment(record.detach_handles(), record.segment_id)
        end_time = self._clock()

        # Encoders may still be flushing after stop() resolves
        await self.coordinator.settle()

        input_size = self.file_manager.file_size(record.input_file)
        # Placeholder files count towards output size
        output_size = self.file_manager.file_size(record.output_file)
        if not self.file_manager.exists(record.input_file):
            logger.warning(f"Input file missing after close: {record.input_file}")

        record.finalize(
            end_time=end_time,
            input_size=input_size,
            output_size=output_size,
            input_duration=calculate_duration(
                input_size, self.config.sample_rate, record.input_channels, self.config.bit_depth),
            output_duration=calculate_duration(
                output_size, self.config.sample_rate, record.output_channels, self.config.bit_depth),
        )

        logger.info(f"Segment {record.segment_id} saved: {record.duration:.1f}s, "
                    f"input {input_size} bytes, output {output_size} bytes")
        self.publisher.publish_segment_event(SegmentEvent(
            session_id=self.session_id,
            segment_id=record.segment_id,
            event_type="closed",
            index=record.index,
            has_output_audio=record.has_output_audio,
            metadata=record.to_dict(),
        ))
        return record

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    def _arm_scheduler(self) -> None:
        self.scheduler.arm(self._on_segment_expired)

    def _on_segment_expired(self) -> None:
        if self.state is not SessionState.RECORDING:
            logger.debug("Segment timer expired after recording stopped, ignoring")
            return
        if self._rotation_task is not None and not self._rotation_task.done():
            logger.warning("Segment timer expired while a rotation is still running")
            return
        self._rotation_task = asyncio.ensure_future(self._rotate())

    async def _rotate(self) -> None:
        if self.state is not SessionState.RECORDING:
            return
        generation = self._generation

        try:
            await self._close_active_segment()

            if self.state is not SessionState.RECORDING:
                # stop() arrived while the segment was closing; it finishes the shutdown
                return

            record = await self._open_next_segment(generation, require_state=SessionState.RECORDING)
            if record is None:
                return
        except Exception as e:
            if self.state is SessionState.RECORDING and self._generation == generation:
                await self._recover_from_error(e)
            else:
                logger.warning(f"Segment rotation failed during stop: {e}")
            return

        self._arm_scheduler()

    async def _wait_for_rotation(self) -> None:
        task = self._rotation_task
        if task is None or task.done() or task is asyncio.current_task():
            return
        try:
            await task
        except Exception as e:
            logger.warning(f"Segment rotation failed during stop: {e}")

    async def _recover_from_error(self, error: Exception) -> None:
        """Safety stop after an unrecoverable rotation failure."""
        logger.error(f"Unrecoverable recording error in session {self.session_id}: {error}")
        session_id = self.session_id
        self.last_error = str(error)

        self.scheduler.cancel()
        await self._release_open_handles()

        partial = self._build_report()
        try:
            self._ensure_serializable(partial)
            self.last_report = partial
        except NonSerializableResult as e:
            logger.error(f"Partial report dropped: {e}")
            partial = None

        self._clear_state()
        self.publisher.publish_session_event(SessionEvent(
            session_id=session_id,
            event_type="error",
            metadata={"error": str(error), "code": type(error).__name__, "report": partial},
        ))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _abort_start(self) -> None:
        self.scheduler.cancel()
        await self._release_open_handles()
        self._clear_state()

    async def _release_open_handles(self) -> None:
        if self.coordinator is None:
            return
        for record in self.segments:
            handles = record.detach_handles()
            if handles is not None:
                await self.coordinator.close_segment(handles, record.segment_id)

    def _clear_state(self) -> None:
        self.state = SessionState.IDLE
        self.session_id = None
        self.segment_index = 0
        self.segments = []

    def _build_report(self) -> Dict[str, Any]:
        finalized = [s for s in self.segments if s.is_finalized]
        return AggregateReport(session_id=self.session_id, segments=finalized).to_dict()

    @staticmethod
    def _ensure_serializable(result: Any) -> Any:
        """Verify a result is plain data that can cross a process boundary."""
        try:
            json.dumps(result, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise NonSerializableResult(f"Result is not serializable: {e}") from e
        return result
