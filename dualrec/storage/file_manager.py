"""File management for segment recordings in the working directory."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Tuple, Union


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class FileManager:
    """Manages the recordings working directory and segment file naming."""

    def __init__(self, data_dir: str = "./data/recordings", extension: str = "wav"):
        """Initialize file manager with the recordings directory.

        Args:
            data_dir: Working directory holding all segment files
            extension: File extension for segment files (without dot)
        """
        self.data_dir = Path(data_dir)
        self.extension = extension.lstrip(".")

        self.ensure_dir(self.data_dir)

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def ensure_dir(self, directory: PathLike) -> Path:
        """Ensure a directory exists."""
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory exists: {path}")
        return path

    def segment_paths(self, segment_id: str) -> Tuple[str, str]:
        """Get (input_file, output_file) paths for a segment.

        Args:
            segment_id: Segment identifier (<session_id>_segment_<NNN>)

        Returns:
            Tuple of absolute-or-relative path strings under data_dir
        """
        input_file = self.data_dir / f"input_{segment_id}.{self.extension}"
        output_file = self.data_dir / f"output_{segment_id}.{self.extension}"
        return str(input_file), str(output_file)

    def exists(self, file_path: PathLike) -> bool:
        return Path(file_path).is_file()

    def file_size(self, file_path: PathLike) -> int:
        """Get file size in bytes, 0 if the file does not exist."""
        path = Path(file_path)
        try:
            return path.stat().st_size if path.is_file() else 0
        except OSError as e:
            logger.warning(f"Could not stat {path}: {e}")
            return 0

    def write_file(self, file_path: PathLike, data: bytes) -> str:
        """Write bytes to a file, replacing any previous content.

        Args:
            file_path: Destination path
            data: Bytes to write

        Returns:
            Path of the written file
        """
        path = Path(file_path)
        self.ensure_dir(path.parent)

        try:
            with open(path, 'wb') as f:
                f.write(data)

            logger.debug(f"File written: {path} ({len(data)} bytes)")
            return str(path)

        except Exception as e:
            logger.error(f"Error writing file {path}: {e}")
            raise

    def remove_files(self, *file_paths: PathLike) -> int:
        """Remove the given files if present. Failures are logged, not raised.

        Returns:
            Number of files removed
        """
        removed = 0
        for file_path in file_paths:
            path = Path(file_path)
            try:
                if path.is_file():
                    path.unlink()
                    removed += 1
                    logger.debug(f"Removed file: {path}")
            except OSError as e:
                logger.warning(f"Failed to remove {path}: {e}")
        return removed

    def cleanup_recordings(self) -> int:
        """Remove segment files with this manager's extension from the working directory.

        Returns:
            Number of files removed
        """
        removed = 0
        try:
            for file_path in self.data_dir.iterdir():
                if file_path.is_file() and file_path.suffix == f".{self.extension}":
                    file_path.unlink()
                    removed += 1
            logger.info(f"Cleaned up {removed} recording files")
        except OSError as e:
            logger.warning(f"Failed to cleanup recording files: {e}")
        return removed

    def cleanup_old_recordings(self, max_age_days: int = 30) -> int:
        """Remove segment files older than max_age_days.

        Args:
            max_age_days: Maximum age in days before cleanup

        Returns:
            Number of files removed
        """
        cutoff_time = datetime.now().timestamp() - (max_age_days * 24 * 60 * 60)
        cleaned_count = 0

        try:
            for file_path in self.data_dir.iterdir():
                if file_path.is_file() and file_path.suffix == f".{self.extension}":
                    if file_path.stat().st_mtime < cutoff_time:
                        file_path.unlink()
                        cleaned_count += 1
                        logger.info(f"Cleaned up old recording: {file_path}")

            logger.info(f"Cleaned up {cleaned_count} old recordings")
            return cleaned_count

        except OSError as e:
            logger.error(f"Error during cleanup: {e}")
            return cleaned_count

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage usage statistics.

        Returns:
            Dictionary with storage statistics
        """
        total_size = 0
        input_files = 0
        output_files = 0

        for file_path in self.data_dir.iterdir():
            if not file_path.is_file() or file_path.suffix != f".{self.extension}":
                continue
            total_size += file_path.stat().st_size
            if file_path.name.startswith("input_"):
                input_files += 1
            elif file_path.name.startswith("output_"):
                output_files += 1

        return {
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "input_files": input_files,
            "output_files": output_files,
            "data_directory": str(self.data_dir)
        }
