"""PyAudio-backed capture provider writing each stream to a WAV file."""

import asyncio
import logging
import wave
from threading import Event, Thread
from typing import Any, Dict, List, Optional, Sequence

import pyaudio

from .provider import CaptureHandle, CaptureKind, CaptureProvider

logger = logging.getLogger(__name__)

# Device name fragments that identify a system-audio loopback/monitor input
LOOPBACK_KEYWORDS = (
    "monitor",
    "loopback",
    "stereo mix",
    "blackhole",
    "soundflower",
    "what u hear",
)


class PyAudioCaptureHandle(CaptureHandle):
    """One open PyAudio input stream recorded to a WAV file on a background thread."""

    def __init__(self,
                 pyaudio_instance: pyaudio.PyAudio,
                 device_index: int,
                 target_path: str,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 chunk_size: int = 1024,
                 format: int = pyaudio.paInt16):
        self.pyaudio_instance = pyaudio_instance
        self.device_index = device_index
        self.target_path = target_path
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_size = chunk_size
        self.format = format

        self.stream = None
        self.wave_file: Optional[wave.Wave_write] = None
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.total_chunks = 0
        self._stopped = False

    def open(self) -> None:
        """Open the stream and the target file, then start the recording thread."""
        self.stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            input_device_index=self.device_index,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        try:
            self.wave_file = wave.open(self.target_path, 'wb')
            self.wave_file.setnchannels(self.channels)
            self.wave_file.setsampwidth(self.pyaudio_instance.get_sample_size(self.format))
            self.wave_file.setframerate(self.sample_rate)
        except Exception:
            self.stream.close()
            self.stream = None
            raise

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = f"CaptureThread-{self.device_index}"
        self.recording_thread.start()
        logger.info(f"Capture opened on device {self.device_index}: {self.sample_rate}Hz, "
                    f"{self.channels}ch -> {self.target_path}")

    def _record_continuously(self) -> None:
        """Internal method: read chunks until stopped, appending them to the WAV file."""
        try:
            while not self.stop_event.is_set():
                audio_chunk = self.stream.read(self.chunk_size, exception_on_overflow=False)
                self.wave_file.writeframes(audio_chunk)
                self.total_chunks += 1
        except Exception as e:
            logger.error(f"Capture on device {self.device_index} failed: {e}")
        finally:
            self._close_resources()

    def _close_resources(self) -> None:
        try:
            if self.stream is not None:
                self.stream.stop_stream()
                self.stream.close()
        finally:
            self.stream = None
            if self.wave_file is not None:
                self.wave_file.close()  # Rewrites the header with the final data size
                self.wave_file = None

    def _join(self) -> None:
        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning(f"Capture thread for device {self.device_index} did not stop cleanly")

    async def stop(self) -> None:
        if self._stopped:
            logger.warning(f"Capture for {self.target_path} already stopped")
            return
        self._stopped = True
        self.stop_event.set()
        await asyncio.get_running_loop().run_in_executor(None, self._join)
        logger.info(f"Capture stopped: {self.target_path} ({self.total_chunks} chunks)")


class PyAudioCaptureProvider(CaptureProvider):
    """Captures the default microphone as input and a loopback device as output."""

    def __init__(self,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 chunk_size: int = 1024,
                 loopback_keywords: Sequence[str] = LOOPBACK_KEYWORDS):
        """Initialize PyAudio provider.

        Args:
            sample_rate: Capture sample rate
            channels: Requested channel count (capped by the device)
            chunk_size: Frames per read
            loopback_keywords: Name fragments identifying system-audio devices
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_size = chunk_size
        self.loopback_keywords = tuple(k.lower() for k in loopback_keywords)
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    @property
    def ready(self) -> bool:
        return self.pyaudio_instance is not None

    def open(self) -> None:
        if self.pyaudio_instance is None:
            self.pyaudio_instance = pyaudio.PyAudio()
            logger.info("PyAudio initialized")

    def terminate(self) -> None:
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
            logger.info("PyAudio terminated")

    def _devices(self) -> List[Dict[str, Any]]:
        devices = []
        for index in range(self.pyaudio_instance.get_device_count()):
            info = self.pyaudio_instance.get_device_info_by_index(index)
            devices.append(info)
        return devices

    def _is_loopback(self, info: Dict[str, Any]) -> bool:
        name = str(info.get('name', '')).lower()
        return any(keyword in name for keyword in self.loopback_keywords)

    def find_input_device(self) -> Optional[Dict[str, Any]]:
        """Default microphone, or the first non-loopback input device."""
        try:
            info = self.pyaudio_instance.get_default_input_device_info()
            if info.get('maxInputChannels', 0) > 0:
                return info
        except (IOError, OSError):
            logger.debug("No default input device reported")

        for info in self._devices():
            if info.get('maxInputChannels', 0) > 0 and not self._is_loopback(info):
                return info
        return None

    def find_loopback_device(self) -> Optional[Dict[str, Any]]:
        for info in self._devices():
            if info.get('maxInputChannels', 0) > 0 and self._is_loopback(info):
                return info
        return None

    async def start_capture(self, kind: CaptureKind, target_path: str) -> Optional[CaptureHandle]:
        if not self.ready:
            logger.warning("PyAudio provider not opened")
            return None

        if kind is CaptureKind.INPUT:
            device = self.find_input_device()
        else:
            device = self.find_loopback_device()

        if device is None:
            logger.warning(f"No {kind.value} capture device available")
            return None

        handle = PyAudioCaptureHandle(
            self.pyaudio_instance,
            device_index=int(device['index']),
            target_path=target_path,
            sample_rate=self.sample_rate,
            channels=max(1, min(self.channels, int(device['maxInputChannels']))),
            chunk_size=self.chunk_size,
        )
        await asyncio.get_running_loop().run_in_executor(None, handle.open)
        return handle

    async def list_devices(self) -> List[Dict[str, Any]]:
        if not self.ready:
            return []
        return [
            {
                "index": int(info['index']),
                "name": str(info.get('name', '')),
                "max_input_channels": int(info.get('maxInputChannels', 0)),
                "default_sample_rate": float(info.get('defaultSampleRate', 0.0)),
                "is_loopback": self._is_loopback(info),
            }
            for info in self._devices()
            if info.get('maxInputChannels', 0) > 0
        ]
