"""Pydantic models for a single extracted event.

- :class:`EventDraft` -- the loosely-typed object parsed out of the
  completion text.  Every field is optional.
- :class:`NormalizedEvent` -- a fully-populated, validated event ready for
  encoding.
- :class:`NoEventDetected` -- the negative result of an extraction.

Times are carried as zero-padded 24-hour ``"HH:MM"`` strings, dates as
:class:`datetime.date`.  There is no timezone anywhere: every value is
local wall-clock ("floating") time.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator, model_validator

logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def canonical_time(value: str) -> str:
    """Return *value* as a zero-padded ``"HH:MM"`` string.

    Accepts ``H:MM``, ``HH:MM`` and ``HH:MM:SS``; seconds are dropped.

    Raises:
        ValueError: If *value* is not a valid 24-hour clock time.
    """
    match = _TIME_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time out of range: {value!r}")
    return f"{hours:02d}:{minutes:02d}"


def minutes_of_day(value: str) -> int:
    """Return the minute-of-day of an ``"HH:MM"`` time string."""
    hours, minutes = canonical_time(value).split(":")
    return int(hours) * 60 + int(minutes)


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


# ---------------------------------------------------------------------------
# EventDraft -- raw model output
# ---------------------------------------------------------------------------


class EventDraft(BaseModel):
    """A partially-populated event awaiting normalization.

    Attributes:
        title: Event title, or ``None``.
        description: Free-text description, or ``None``.
        date: Calendar date, or ``None``.
        start_time: Canonical ``"HH:MM"`` start, or ``None`` when absent or
            not a valid clock time.
        end_time: Canonical ``"HH:MM"`` end, or ``None`` likewise.
        location: Location text, or ``None``.
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None
    date: dt.date | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None

    @field_validator("title", "description", "location", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        return _blank_to_none(value)

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _coerce_time(cls, value: Any, info: ValidationInfo) -> Any:
        # An unusable time is dropped so the defaults step can fill it in.
        value = _blank_to_none(value)
        if value is None:
            return None
        if isinstance(value, str):
            try:
                return canonical_time(value)
            except ValueError:
                pass
        logger.warning("Discarding unusable %s %r", info.field_name, value)
        return None


# ---------------------------------------------------------------------------
# NormalizedEvent -- validated, ready to encode
# ---------------------------------------------------------------------------


class NormalizedEvent(BaseModel):
    """A fully-populated event that satisfies all encoding invariants.

    ``end_time`` is always strictly later in the day than ``start_time``.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    date: dt.date
    start_time: str
    end_time: str
    description: str = ""
    location: str = ""

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _canonical_time(cls, value: Any) -> Any:
        if isinstance(value, str):
            return canonical_time(value)
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> NormalizedEvent:
        if minutes_of_day(self.end_time) <= minutes_of_day(self.start_time):
            raise ValueError(
                f"end_time ({self.end_time}) must be after start_time ({self.start_time})"
            )
        return self


# ---------------------------------------------------------------------------
# NoEventDetected -- negative result
# ---------------------------------------------------------------------------


class NoEventDetected(BaseModel):
    """The extraction found no usable event.

    Attributes:
        reason: Short explanation for the logs.
    """

    model_config = ConfigDict(frozen=True)

    reason: str = ""


ExtractionOutcome = Union[NormalizedEvent, NoEventDetected]
