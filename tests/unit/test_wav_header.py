"""Unit tests for WAV header helpers."""

import struct
import wave
import io

import pytest

from dualrec.audio.wav_header import WAV_HEADER_SIZE, build_wav_header, calculate_duration
from dualrec.exceptions import InvalidParameter


@pytest.mark.unit
class TestBuildWavHeader:
    """Test cases for build_wav_header."""

    @pytest.mark.parametrize("sample_rate,channels", [(8000, 1), (16000, 1), (44100, 2), (48000, 6)])
    def test_header_is_44_bytes_with_byte_rate(self, sample_rate, channels):
        header = build_wav_header(sample_rate, channels)

        assert len(header) == WAV_HEADER_SIZE == 44
        byte_rate = struct.unpack_from("<I", header, 28)[0]
        block_align = struct.unpack_from("<H", header, 32)[0]
        assert byte_rate == sample_rate * channels * 2
        assert block_align == channels * 2

    def test_header_fields(self):
        header = build_wav_header(16000, 1)

        assert header[0:4] == b"RIFF"
        assert struct.unpack_from("<I", header, 4)[0] == 36
        assert header[8:12] == b"WAVE"
        assert header[12:16] == b"fmt "
        assert struct.unpack_from("<H", header, 20)[0] == 1  # PCM
        assert header[36:40] == b"data"
        assert struct.unpack_from("<I", header, 40)[0] == 0

    def test_header_parses_as_empty_wav(self):
        with wave.open(io.BytesIO(build_wav_header(22050, 2, 16)), 'rb') as wf:
            assert wf.getnchannels() == 2
            assert wf.getframerate() == 22050
            assert wf.getsampwidth() == 2
            assert wf.getnframes() == 0

    def test_custom_bit_depth(self):
        header = build_wav_header(16000, 2, bit_depth=24)

        assert struct.unpack_from("<I", header, 28)[0] == 16000 * 2 * 3
        assert struct.unpack_from("<H", header, 34)[0] == 24

    @pytest.mark.parametrize("args", [(0, 1), (16000, 0), (-1, 1), (16000, 1, 0), (16000, 1, 12)])
    def test_invalid_parameters(self, args):
        with pytest.raises(InvalidParameter):
            build_wav_header(*args)

    def test_invalid_parameter_is_value_error(self):
        with pytest.raises(ValueError):
            build_wav_header(16000, -2)


@pytest.mark.unit
class TestCalculateDuration:
    """Test cases for calculate_duration."""

    def test_one_second_of_mono_audio(self):
        assert calculate_duration(44 + 32000, 16000, 1) == pytest.approx(1.0)

    def test_header_only_is_zero(self):
        assert calculate_duration(44, 16000, 1) == 0.0
        assert calculate_duration(0, 16000, 1) == 0.0

    def test_zero_rate_is_zero(self):
        assert calculate_duration(1000, 0, 1) == 0.0
