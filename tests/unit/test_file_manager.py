"""Unit tests for FileManager class."""

import os
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from dualrec.storage.file_manager import FileManager


@pytest.mark.unit
class TestFileManager:
    """Test cases for FileManager class."""

    def test_initialization(self, temp_data_dir):
        """Test FileManager initialization creates the working directory."""
        data_dir = Path(temp_data_dir) / "nested" / "recordings"
        fm = FileManager(str(data_dir))

        assert fm.data_dir == data_dir
        assert data_dir.is_dir()
        assert fm.extension == "wav"

    def test_segment_paths(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        input_file, output_file = fm.segment_paths("abc_segment_007")

        assert input_file == str(Path(temp_data_dir) / "input_abc_segment_007.wav")
        assert output_file == str(Path(temp_data_dir) / "output_abc_segment_007.wav")

    def test_segment_paths_custom_extension(self, temp_data_dir):
        fm = FileManager(temp_data_dir, extension=".webm")

        input_file, _ = fm.segment_paths("s_segment_000")

        assert input_file.endswith("input_s_segment_000.webm")

    def test_write_file_and_size(self, temp_data_dir, sample_audio_chunk):
        fm = FileManager(temp_data_dir)
        target = Path(temp_data_dir) / "sub" / "file.wav"

        path = fm.write_file(target, sample_audio_chunk)

        assert fm.exists(path)
        assert fm.file_size(path) == len(sample_audio_chunk)

    def test_write_file_overwrites(self, temp_data_dir):
        fm = FileManager(temp_data_dir)
        target = Path(temp_data_dir) / "file.wav"

        fm.write_file(target, b"x" * 100)
        fm.write_file(target, b"y" * 44)

        assert fm.file_size(target) == 44

    def test_file_size_missing_file(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        assert fm.file_size(Path(temp_data_dir) / "missing.wav") == 0
        assert not fm.exists(Path(temp_data_dir) / "missing.wav")

    def test_error_handling_write_file(self, temp_data_dir):
        """Test error handling when writing a file fails."""
        fm = FileManager(temp_data_dir)

        with patch('builtins.open', side_effect=PermissionError("Access denied")):
            with pytest.raises(PermissionError):
                fm.write_file(Path(temp_data_dir) / "test.wav", b"test data")

    def test_cleanup_recordings_only_removes_wav(self, temp_data_dir):
        fm = FileManager(temp_data_dir)
        for name in ("input_a_segment_000.wav", "output_a_segment_000.wav"):
            fm.write_file(Path(temp_data_dir) / name, b"data")
        keep = Path(temp_data_dir) / "notes.txt"
        keep.write_text("keep me")

        removed = fm.cleanup_recordings()

        assert removed == 2
        assert keep.exists()
        assert list(Path(temp_data_dir).glob("*.wav")) == []

    def test_remove_files(self, temp_data_dir):
        fm = FileManager(temp_data_dir)
        present = fm.write_file(Path(temp_data_dir) / "input_a_segment_001.wav", b"data")

        removed = fm.remove_files(present, Path(temp_data_dir) / "output_a_segment_001.wav")

        assert removed == 1
        assert not Path(present).exists()

    def test_cleanup_old_recordings(self, temp_data_dir):
        fm = FileManager(temp_data_dir)
        old_file = Path(fm.write_file(Path(temp_data_dir) / "input_old_segment_000.wav", b"old"))
        new_file = Path(fm.write_file(Path(temp_data_dir) / "input_new_segment_000.wav", b"new"))

        # Make it appear old by modifying timestamp
        old_timestamp = (datetime.now() - timedelta(days=35)).timestamp()
        os.utime(old_file, (old_timestamp, old_timestamp))

        cleaned_count = fm.cleanup_old_recordings(max_age_days=30)

        assert cleaned_count == 1
        assert not old_file.exists()
        assert new_file.exists()

    def test_get_storage_stats_empty(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        stats = fm.get_storage_stats()

        assert stats['total_size_bytes'] == 0
        assert stats['total_size_mb'] == 0.0
        assert stats['input_files'] == 0
        assert stats['output_files'] == 0
        assert stats['data_directory'] == str(fm.data_dir)

    def test_get_storage_stats_with_data(self, temp_data_dir, sample_audio_chunk):
        fm = FileManager(temp_data_dir)
        fm.write_file(Path(temp_data_dir) / "input_s_segment_000.wav", sample_audio_chunk)
        fm.write_file(Path(temp_data_dir) / "output_s_segment_000.wav", b"\x00" * 44)

        stats = fm.get_storage_stats()

        assert stats['total_size_bytes'] == len(sample_audio_chunk) + 44
        assert stats['input_files'] == 1
        assert stats['output_files'] == 1
