"""Audio capture contracts and helpers."""

from .provider import CaptureHandle, CaptureKind, CaptureProvider
from .wav_header import WAV_HEADER_SIZE, build_wav_header, calculate_duration

__all__ = [
    'CaptureHandle',
    'CaptureKind',
    'CaptureProvider',
    'WAV_HEADER_SIZE',
    'build_wav_header',
    'calculate_duration',
]
