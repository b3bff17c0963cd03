"""Exception types raised by the recording core."""


class RecordingError(Exception):
    """Base class for every error surfaced by a recording session."""

    @property
    def code(self) -> str:
        return type(self).__name__


class InvalidParameter(RecordingError, ValueError):
    """Raised when an audio parameter is out of range."""


class AlreadyRecording(RecordingError):
    """Raised by start() when the session is already recording."""


class NotRecording(RecordingError):
    """Raised when an operation needs an active recording."""


class OperationInProgress(RecordingError):
    """Raised when start/stop arrives while another transition is in flight."""


class InputCaptureFailed(RecordingError):
    """Raised when the mandatory input (microphone) stream cannot be opened."""


class NoCaptureContext(RecordingError):
    """Raised by start() when no ready capture context has been set."""


class NonSerializableResult(RecordingError):
    """Raised when a result about to cross the boundary is not plain data."""
