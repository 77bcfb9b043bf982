"""Exception types raised across the unmark pipeline."""

from enum import Enum


class ErrorKind(str, Enum):
    """User-visible failure categories recorded on a session."""

    VALIDATION = "validation"
    PROCESSING = "processing"


class UnmarkError(Exception):
    """Base class for unmark errors."""
    pass


class ValidationError(UnmarkError):
    """No video file or URL was provided before processing."""
    kind = ErrorKind.VALIDATION


class ProcessingError(UnmarkError):
    """An unexpected failure interrupted the staged sequence."""
    kind = ErrorKind.PROCESSING


class CollaboratorUnavailable(UnmarkError):
    """The optional description service could not be reached.

    Never shown to the user; logged and discarded by the caller.
    """
    pass


class RegionError(UnmarkError):
    """Invalid region specification."""
    pass
