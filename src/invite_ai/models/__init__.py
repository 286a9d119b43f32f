"""Data models for invite-ai."""

from __future__ import annotations

from invite_ai.models.event import (
    EventDraft,
    ExtractionOutcome,
    NoEventDetected,
    NormalizedEvent,
)

__all__ = [
    "EventDraft",
    "ExtractionOutcome",
    "NoEventDetected",
    "NormalizedEvent",
]
