"""Pytest configuration and fixtures for dualrec tests."""

import pytest
import tempfile
import logging
import uuid
import wave
from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock, patch

import numpy as np
from pubsub import pub

from dualrec.audio.provider import CaptureHandle, CaptureKind, CaptureProvider
from dualrec.config import RecordingConfig
from dualrec.services.event_publisher import SessionEventPublisher
from dualrec.storage.file_manager import FileManager


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


class FakeCaptureHandle(CaptureHandle):
    """Writes a real WAV file: header on open, audio frames on stop."""

    def __init__(self, kind: CaptureKind, target_path: str, audio_chunk: bytes,
                 chunks: int = 4, stop_error: Optional[Exception] = None,
                 channels: Optional[int] = None):
        self.kind = kind
        self.target_path = target_path
        self.audio_chunk = audio_chunk
        self.chunks = chunks
        self.stop_error = stop_error
        self.stop_calls = 0
        self.channels = channels
        self._write(b"")

    def _write(self, frames: bytes) -> None:
        with wave.open(self.target_path, 'wb') as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)
            wf.setframerate(16000)
            wf.writeframes(frames)

    async def stop(self) -> None:
        self.stop_calls += 1
        self._write(self.audio_chunk * self.chunks)
        if self.stop_error is not None:
            raise self.stop_error


class FakeCaptureProvider(CaptureProvider):
    """In-memory capture provider with switchable failure modes."""

    def __init__(self, audio_chunk: bytes):
        self.audio_chunk = audio_chunk
        self.is_ready = True
        self.input_mode = "ok"  # "ok", "none", "raise"
        self.output_mode = "ok"
        self.stop_error: Optional[Exception] = None
        self.fail_input_after: Optional[int] = None  # Fail input once this many opened
        self.device_channels: Optional[int] = None  # Reported by handles when set
        self.handles: List[FakeCaptureHandle] = []
        self.calls: List[tuple] = []

    @property
    def ready(self) -> bool:
        return self.is_ready

    async def start_capture(self, kind: CaptureKind, target_path: str) -> Optional[CaptureHandle]:
        self.calls.append((kind, target_path))
        mode = self.input_mode if kind is CaptureKind.INPUT else self.output_mode

        if kind is CaptureKind.INPUT and self.fail_input_after is not None:
            opened_inputs = sum(1 for h in self.handles if h.kind is CaptureKind.INPUT)
            if opened_inputs >= self.fail_input_after:
                mode = "raise"

        if mode == "none":
            return None
        if mode == "raise":
            raise OSError(f"{kind.value} device unavailable")

        handle = FakeCaptureHandle(kind, target_path, self.audio_chunk, stop_error=self.stop_error,
                                   channels=self.device_channels)
        self.handles.append(handle)
        return handle

    async def list_devices(self):
        return [{"index": 0, "name": "Fake Mic", "max_input_channels": 1,
                 "default_sample_rate": 16000.0, "is_loopback": False}]


@pytest.fixture
def fake_provider(sample_audio_chunk):
    return FakeCaptureProvider(sample_audio_chunk)


@pytest.fixture
def recording_config():
    """Short segments and a tiny settle delay so tests run quickly."""
    return RecordingConfig(
        sample_rate=16000,
        channels=1,
        segment_duration_seconds=1,
        settle_delay_seconds=0.01,
    )


@pytest.fixture
def file_manager(temp_data_dir):
    return FileManager(str(Path(temp_data_dir) / "recordings"))


@pytest.fixture
def event_topics():
    """Unique pub/sub topics per test, collecting every published event."""
    suffix = f"t{uuid.uuid4().hex}"
    session_topic = f"test.session.{suffix}"
    segment_topic = f"test.segment.{suffix}"
    received = {"session": [], "segment": []}

    def on_session(event):
        received["session"].append(event)

    def on_segment(event):
        received["segment"].append(event)

    pub.subscribe(on_session, session_topic)
    pub.subscribe(on_segment, segment_topic)

    yield SessionEventPublisher(session_topic, segment_topic), received

    pub.unsubscribe(on_session, session_topic)
    pub.unsubscribe(on_segment, segment_topic)


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
