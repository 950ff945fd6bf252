"""Exception types raised by ADHDone components."""

from typing import Optional


class AdhdoneError(Exception):
    """Base class for all ADHDone errors."""


class InvalidArgument(AdhdoneError, ValueError):
    """The caller passed structurally invalid input (e.g. a missing task id)."""


class StorageFailure(AdhdoneError):
    """The key-value store could not read or write a value."""


class CompletionError(AdhdoneError):
    """Base class for completion service failures.

    These are caught by the suggestion generator and brain dump organizer and
    turned into heuristic results annotated with the error message.
    """


class MissingCredential(CompletionError):
    """No API key is stored for the completion service."""


class RequestFailed(CompletionError):
    """The completion service answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(CompletionError):
    """The completion service answered without usable text."""
