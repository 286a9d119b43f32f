"""Deterministic completion of partial event drafts.

Fills in whatever the completion service left out so every extracted draft
either becomes a valid :class:`~invite_ai.models.event.NormalizedEvent` or
degrades to :class:`~invite_ai.models.event.NoEventDetected`.  No event is
ever returned half-populated.

Rules:

- **date** -- today when absent.
- **start_time** -- inferred from activity keywords in the input text and
  title (lunch 12:00, dinner 19:00, breakfast 09:00, meeting-like 15:00,
  evening fun 20:00, otherwise noon).
- **end_time** -- one hour after the start when absent, equal to the start,
  or not later in the day than the start.
- **description** / **location** -- empty string when absent.
"""

from __future__ import annotations

import logging
from datetime import date

from pydantic import ValidationError

from invite_ai.models.event import (
    EventDraft,
    ExtractionOutcome,
    NoEventDetected,
    NormalizedEvent,
    minutes_of_day,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60
DEFAULT_START_TIME = "12:00"

# Latest representable same-day end time.  Events never cross midnight.
_LAST_MINUTE_OF_DAY = 23 * 60 + 59

# Checked in order; first match wins.
_ACTIVITY_START_TIMES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("lunch",), "12:00"),
    (("dinner",), "19:00"),
    (("breakfast",), "09:00"),
    (("meeting", "study", "session", "group"), "15:00"),
    (("game", "party", "night"), "20:00"),
)


def infer_start_time(text: str) -> str:
    """Pick a default start time from activity keywords in *text*.

    Matching is case-insensitive substring matching, so "Dinner" and
    "dinnertime" both count as dinner.

    Args:
        text: Input text and event title, concatenated.

    Returns:
        An ``"HH:MM"`` start time.
    """
    lowered = text.lower()
    for keywords, start_time in _ACTIVITY_START_TIMES:
        if any(keyword in lowered for keyword in keywords):
            return start_time
    return DEFAULT_START_TIME


def add_minutes(start_time: str, minutes: int) -> str:
    """Add *minutes* to an ``"HH:MM"`` time without leaving the day.

    A result past 23:59 is clamped to 23:59.
    """
    total = minutes_of_day(start_time) + minutes
    if total > _LAST_MINUTE_OF_DAY:
        # Provisional until product decides whether late events roll over
        # to the next day.
        logger.warning(
            "End time for start %s crosses midnight, clamping to 23:59", start_time
        )
        total = _LAST_MINUTE_OF_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def _needs_end_time(start_time: str, end_time: str | None) -> bool:
    if not end_time or end_time == start_time:
        return True
    return minutes_of_day(end_time) <= minutes_of_day(start_time)


def apply_event_defaults(
    draft: EventDraft,
    input_text: str,
    today: date,
) -> ExtractionOutcome:
    """Complete *draft* into a :class:`NormalizedEvent`.

    Args:
        draft: The parsed, possibly partial event.
        input_text: The user's original text, used for keyword inference.
        today: The caller's current local date.

    Returns:
        The normalized event, or :class:`NoEventDetected` when the draft
        cannot be completed into a valid event.
    """
    title = (draft.title or "").strip()
    event_date = draft.date or today

    start_time = draft.start_time
    if not start_time:
        start_time = infer_start_time(f"{input_text} {title}")
        logger.info("No start time given, inferred %s", start_time)

    end_time = draft.end_time
    if _needs_end_time(start_time, end_time):
        corrected = add_minutes(start_time, DEFAULT_DURATION_MINUTES)
        if end_time:
            logger.info("End time %s is not after start %s, using %s", end_time, start_time, corrected)
        end_time = corrected

    if not title or not event_date or not start_time:
        return NoEventDetected(reason="missing title, date or start time")

    try:
        event = NormalizedEvent(
            title=title,
            date=event_date,
            start_time=start_time,
            end_time=end_time,
            description=draft.description or "",
            location=draft.location or "",
        )
    except ValidationError as exc:
        logger.warning("Event failed final validation: %s", exc)
        return NoEventDetected(reason="final validation failed")

    logger.info(
        "Normalized event: '%s' on %s %s-%s",
        event.title,
        event.date.isoformat(),
        event.start_time,
        event.end_time,
    )
    return event
