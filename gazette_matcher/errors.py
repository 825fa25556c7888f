"""
Error taxonomy for the matcher client.
"""

from __future__ import annotations


class MatcherError(Exception):
    """Base class; ``message`` is what gets shown to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SubmissionError(MatcherError):
    pass


class ValidationError(SubmissionError):
    """Required input is missing or out of range. Raised before any network call."""


class SubmissionInProgressError(SubmissionError):
    pass


class NetworkError(SubmissionError):
    """Transport failure or the submission round trip exceeded its time bound."""

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class RemoteError(SubmissionError):
    """Non-2xx response from the matching service."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ClearError(MatcherError):
    """The destructive reset failed; the remote store state is unknown to the client."""


class ExportUnavailableError(MatcherError):
    pass
