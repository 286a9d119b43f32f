"""Custom exceptions for the invite-ai extraction pipeline.

Every failure the pipeline knows how to describe is raised as a subclass of
:class:`InviteError` tagged with its :class:`~invite_ai.errors.ErrorKind` at
the point of failure, so the error classifier never has to guess from the
message text.

Exception hierarchy::

    InviteError                 (base, carries ``kind``)
    +-- InitializationError     (credential unavailable)
    +-- InvalidCredentialError  (HTTP 401/403)
    +-- RateLimitedError        (HTTP 429)
    +-- ServiceError            (any other non-2xx response)
    +-- NetworkError            (transport failure)
    +-- MalformedResponseError  (unusable completion text)
    +-- CalendarError           (save-and-open sink failure)
"""

from __future__ import annotations

from invite_ai.errors import ErrorKind


class InviteError(Exception):
    """Base class for tagged pipeline failures.

    Attributes:
        kind: The taxonomy entry this failure belongs to.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN


class InitializationError(InviteError):
    """Raised when the completion-service credential cannot be obtained."""

    kind = ErrorKind.INITIALIZATION_FAILURE


class InvalidCredentialError(InviteError):
    """Raised when the completion service rejects the credential (401/403).

    Attributes:
        status_code: The HTTP status returned by the service.
    """

    kind = ErrorKind.INVALID_CREDENTIAL

    def __init__(self, message: str, status_code: int = 401) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(InviteError):
    """Raised when the completion service returns HTTP 429."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str = "Rate limit (429)") -> None:
        super().__init__(message)
        self.status_code = 429


class ServiceError(InviteError):
    """Raised for any other non-success completion-service response.

    Attributes:
        status_code: Upstream HTTP status code.
        upstream_message: Error text reported by the service.
    """

    kind = ErrorKind.SERVICE_FAILURE

    def __init__(self, status_code: int, upstream_message: str) -> None:
        super().__init__(f"Completion API error: {status_code} - {upstream_message}")
        self.status_code = status_code
        self.upstream_message = upstream_message


class NetworkError(InviteError):
    """Raised when the transport could not reach the completion service."""

    kind = ErrorKind.NETWORK_FAILURE


class MalformedResponseError(InviteError):
    """Raised when the completion text cannot be turned into an event draft.

    Covers empty completion envelopes as well as text that is neither the
    ``none`` token nor parseable JSON.

    Attributes:
        raw_response: The raw completion output that failed to parse.
    """

    kind = ErrorKind.MALFORMED_RESPONSE

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response


class CalendarError(InviteError):
    """Raised when the save-and-open sink reports a failure."""

    kind = ErrorKind.CALENDAR_FAILURE


class PipelineBusyError(RuntimeError):
    """Raised when a second request arrives while one is still in flight."""
