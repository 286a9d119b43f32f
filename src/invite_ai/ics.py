"""iCalendar (``.ics``) encoding for normalized events.

Produces a single-event ``VCALENDAR`` in floating local time (no ``Z`` and
no ``TZID``), so calendar applications show the event at the same wall-clock
time it was typed in.  Lines are CRLF-separated and the text ends with
``END:VCALENDAR``.  Lines longer than 75 octets are folded.

:func:`encode_event` is a pure function of the event and the "now"
timestamp: encoding the same event at the same instant yields byte-identical
output, and only the ``UID`` and ``DTSTAMP`` lines depend on "now".
"""

from __future__ import annotations

from datetime import datetime, time

from invite_ai.models.event import NormalizedEvent

PRODUCT_ID = "-//invite-ai//Calendar Generator//EN"
UID_DOMAIN = "invite-ai.app"
CRLF = "\r\n"
MAX_LINE_OCTETS = 75


def escape_text(text: str) -> str:
    """Escape a TEXT property value.

    Backslashes, semicolons, commas, and newlines are escaped exactly once;
    CRLF and bare CR are treated as newlines.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def fold_line(line: str) -> str:
    """Fold a content line so no physical line exceeds 75 UTF-8 octets.

    Continuation lines start with a single space.  Multi-byte characters are
    never split across lines.
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line

    parts: list[str] = []
    current = ""
    size = 0
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > MAX_LINE_OCTETS:
            parts.append(current)
            current, size = " ", 1
        current += char
        size += width
    parts.append(current)
    return CRLF.join(parts)


def format_floating(value: datetime) -> str:
    """Format *value* as a floating ``YYYYMMDDTHHMMSS`` date-time."""
    return value.strftime("%Y%m%dT%H%M%S")


def _event_datetime(event: NormalizedEvent, hhmm: str) -> datetime:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return datetime.combine(event.date, time(hours, minutes))


def build_uid(now: datetime) -> str:
    """Return a per-event identifier derived from *now*.

    Uniqueness is only as good as the microsecond resolution of *now*.
    """
    return f"{now.strftime('%Y%m%dT%H%M%S%f')}@{UID_DOMAIN}"


def encode_event(event: NormalizedEvent, now: datetime) -> str:
    """Serialize *event* as iCalendar text.

    Args:
        event: The validated event to encode.
        now: The creation instant, used for ``UID`` and ``DTSTAMP``.

    Returns:
        The calendar text, CRLF-separated, without a trailing line break.
    """
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODUCT_ID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{build_uid(now)}",
        f"DTSTAMP:{format_floating(now)}",
        f"DTSTART:{format_floating(_event_datetime(event, event.start_time))}",
        f"DTEND:{format_floating(_event_datetime(event, event.end_time))}",
        f"SUMMARY:{escape_text(event.title)}",
    ]
    if event.description:
        lines.append(f"DESCRIPTION:{escape_text(event.description)}")
    if event.location:
        lines.append(f"LOCATION:{escape_text(event.location)}")
    lines.extend(
        [
            "STATUS:CONFIRMED",
            "SEQUENCE:0",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )
    return CRLF.join(fold_line(line) for line in lines)
