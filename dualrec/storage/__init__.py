"""Storage helpers for segment files."""

from .file_manager import FileManager

__all__ = ["FileManager"]
