"""Exceptions raised by the recording and storage layers."""


class RecordingError(Exception):
    """Base exception for recording operations."""

    pass


class RecordingActiveError(RecordingError):
    """Raised when an operation conflicts with the active recording."""

    pass


class SessionNotFoundError(RecordingError):
    """Raised when a session id is not known to the store."""

    pass
