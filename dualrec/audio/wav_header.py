"""Minimal PCM WAV header helpers used for placeholder output files."""

import struct

from ..exceptions import InvalidParameter

WAV_HEADER_SIZE = 44


def build_wav_header(sample_rate: int, channels: int, bit_depth: int = 16) -> bytes:
    """Build a canonical 44-byte RIFF/WAVE header declaring zero payload bytes.

    Args:
        sample_rate: Samples per second
        channels: Number of interleaved channels
        bit_depth: Bits per sample (multiple of 8)

    Returns:
        Header bytes, parseable as an empty PCM file
    """
    for name, value in (("sample_rate", sample_rate), ("channels", channels), ("bit_depth", bit_depth)):
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise InvalidParameter(f"{name} must be a positive integer, got {value!r}")
    if bit_depth % 8:
        raise InvalidParameter(f"bit_depth must be a multiple of 8, got {bit_depth}")

    block_align = channels * bit_depth // 8
    byte_rate = sample_rate * block_align

    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36,  # RIFF chunk size: header minus 8, no payload
        b"WAVE",
        b"fmt ",
        16,  # fmt chunk size
        1,  # PCM
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bit_depth,
        b"data",
        0,
    )


def calculate_duration(size_bytes: int, sample_rate: int, channels: int, bit_depth: int = 16) -> float:
    """Estimate seconds of PCM audio in a WAV file of the given size."""
    bytes_per_second = sample_rate * channels * (bit_depth // 8)
    if bytes_per_second <= 0:
        return 0.0
    payload = max(0, size_bytes - WAV_HEADER_SIZE)
    return payload / bytes_per_second
