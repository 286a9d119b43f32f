"""invite-ai: Text-to-Calendar-Invite AI.

Extracts a single calendar event from free-form text with a language-model
completion service and encodes it as an iCalendar (``.ics``) invite.
"""

from __future__ import annotations

from invite_ai.defaults import apply_event_defaults
from invite_ai.errors import ClassifiedError, ErrorKind, classify_error
from invite_ai.exceptions import InviteError, MalformedResponseError
from invite_ai.ics import encode_event
from invite_ai.models.event import EventDraft, NoEventDetected, NormalizedEvent
from invite_ai.parser import JsonSubstringParser, parse_completion
from invite_ai.pipeline import InviteOrchestrator, InviteResult, PipelineState
from invite_ai.prompts import build_extraction_prompt

__version__ = "0.1.0"

__all__ = [
    "ClassifiedError",
    "ErrorKind",
    "EventDraft",
    "InviteError",
    "InviteOrchestrator",
    "InviteResult",
    "JsonSubstringParser",
    "MalformedResponseError",
    "NoEventDetected",
    "NormalizedEvent",
    "PipelineState",
    "apply_event_defaults",
    "build_extraction_prompt",
    "classify_error",
    "encode_event",
    "parse_completion",
]
