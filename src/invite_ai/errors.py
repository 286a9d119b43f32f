"""User-facing error taxonomy and classifier.

Failures raised inside the pipeline are already tagged (see
:mod:`invite_ai.exceptions`) and classify by their ``kind``.  Failures that
cross an opaque boundary (a host bridge, a third-party library raising an
unexpected exception) only carry free text, so they go through an ordered
list of message rules where the first match wins.

Classification is presentation only: it picks the message shown to the
caller and never changes control flow.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ErrorKind(str, enum.Enum):
    """The fixed set of user-facing failure kinds."""

    INITIALIZATION_FAILURE = "InitializationFailure"
    INVALID_CREDENTIAL = "InvalidCredential"
    RATE_LIMITED = "RateLimited"
    SERVICE_FAILURE = "ServiceFailure"
    NETWORK_FAILURE = "NetworkFailure"
    MALFORMED_RESPONSE = "MalformedResponse"
    NO_EVENT_DETECTED = "NoEventDetected"
    CALENDAR_FAILURE = "CalendarFailure"
    UNKNOWN = "Unknown"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INITIALIZATION_FAILURE: "Failed to initialize. Please check the API key configuration.",
    ErrorKind.INVALID_CREDENTIAL: "Your API key seems invalid. Please update it.",
    ErrorKind.RATE_LIMITED: "The request limit was reached. Try again later.",
    ErrorKind.SERVICE_FAILURE: "Something went wrong with the AI service. Please try again.",
    ErrorKind.NETWORK_FAILURE: "Couldn't connect. Please check your internet connection.",
    ErrorKind.MALFORMED_RESPONSE: "The AI service returned an unreadable answer. Please try again.",
    ErrorKind.NO_EVENT_DETECTED: (
        "Could not detect event details. Please include date, time, and title."
    ),
    ErrorKind.CALENDAR_FAILURE: "Couldn't open Calendar. Please try again.",
    ErrorKind.UNKNOWN: "Something went wrong. Please try again.",
}


@dataclass(frozen=True)
class ClassifiedError:
    """A displayable failure produced at the error-reporting boundary.

    Attributes:
        kind: Taxonomy entry.
        message: Human-readable text for the caller.
        detail: The original failure text, for logs.
    """

    kind: ErrorKind
    message: str
    detail: str = ""


# Ordered (kind, cues) rules for untagged failures.  Rate limiting is checked
# before the generic service rule so "API error ... 429" reads as RateLimited.
_MESSAGE_RULES: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (
        ErrorKind.NETWORK_FAILURE,
        ("failed to fetch", "networkerror", "network", "connection refused", "timed out"),
    ),
    (
        ErrorKind.INVALID_CREDENTIAL,
        ("401", "403", "invalid api key", "authentication", "unauthorized"),
    ),
    (ErrorKind.RATE_LIMITED, ("429", "rate limit", "quota")),
    (ErrorKind.SERVICE_FAILURE, ("api error", "ai service", "service unavailable")),
    (
        ErrorKind.INITIALIZATION_FAILURE,
        ("failed to load api key", "api key not configured", "message api not available"),
    ),
    (ErrorKind.CALENDAR_FAILURE, ("calendar", "ics")),
)


def classify_message(text: str) -> ErrorKind:
    """Classify a free-text failure message by ordered substring rules.

    Args:
        text: The failure message.  Matching is case-insensitive.

    Returns:
        The first matching :class:`ErrorKind`, or ``ErrorKind.UNKNOWN``.
    """
    lowered = text.lower()
    for kind, cues in _MESSAGE_RULES:
        if any(cue in lowered for cue in cues):
            return kind
    return ErrorKind.UNKNOWN


def classify_error(error: BaseException) -> ClassifiedError:
    """Map an arbitrary failure to exactly one user-facing kind.

    Tagged :class:`~invite_ai.exceptions.InviteError` instances classify by
    their ``kind``; anything else falls back to :func:`classify_message`.

    Args:
        error: The exception that terminated the request.

    Returns:
        A :class:`ClassifiedError` with the kind and display message.
    """
    detail = str(error)
    kind = getattr(error, "kind", None)
    if not isinstance(kind, ErrorKind):
        kind = classify_message(detail)
    return ClassifiedError(kind=kind, message=USER_MESSAGES[kind], detail=detail)
