"""dualrec - segmented dual-stream (microphone + system audio) recorder."""

__version__ = "0.1.0"
