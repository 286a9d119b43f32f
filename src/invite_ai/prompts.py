"""Prompt builders for the event-extraction call.

Constructs the fixed system instruction and the per-request user prompt that
ask the completion service to turn one piece of free-form text into a single
event JSON object, or the literal token ``none``.

Both builders are pure: the caller supplies "today", so the same inputs
always produce the same prompt.
"""

from __future__ import annotations

from datetime import date

SYSTEM_PROMPT = (
    "You are a calendar event extraction assistant. Return ONLY valid JSON "
    'or the exact word "none" if no event is detected. No explanations, '
    'no markdown, just JSON or "none".'
)


def build_extraction_prompt(
    input_text: str,
    today: date,
    weekday: str | None = None,
) -> str:
    """Build the user prompt for a single extraction call.

    The prompt embeds the target JSON schema, the rules for resolving
    relative dates and time words, location and title extraction rules, and
    the instruction to answer ``none`` for text that contains no event.

    Args:
        input_text: The free-form text to analyse.
        today: The caller's current local date, used to resolve relative
            references such as "tomorrow" or "this Friday".
        weekday: Name of the current weekday.  Defaults to the weekday of
            *today* (e.g. ``"Monday"``).

    Returns:
        The complete user prompt string.
    """
    today_str = today.isoformat()
    day_of_week = weekday or today.strftime("%A")

    return f"""\
Extract event information from the following text. Return ONLY valid JSON or the word "none" if no event is detected.

Required JSON format:
{{
  "title": "Event title",
  "description": "Event description or original text",
  "date": "YYYY-MM-DD",
  "start_time": "HH:MM",
  "end_time": "HH:MM",
  "location": "..." (optional)
}}

Rules:
1. DATE:
   - If no date specified, use today: {today_str} ({day_of_week})
   - "this [weekday]" = the next occurrence of that day this week
   - "next [weekday]" = exactly 7 days after the next occurrence of that day
   - Example: today is {day_of_week}. "this Wednesday" is the coming Wednesday, \
"next Wednesday" is the Wednesday one week after that.

2. TIME:
   - "tonight" = 20:00 (8 PM)
   - "morning" = 09:00
   - "afternoon" = 15:00
   - "evening" = 19:00
   - If no time specified, default = 12:00 (noon)
   - Use 24-hour format (HH:MM)

3. LOCATION:
   - Extract location from phrases like "at [place]", "in [place]", "Room [number]"
   - Example: "Meeting in Room 205" -> location: "Room 205"
   - If no location, use empty string ""

4. TITLE:
   - Extract the event name/title, removing date/time/location references

5. SAFETY:
   - If the text contains NO event, return exactly: none
   - Examples of "none": casual greetings, questions without events, general conversation

Today is {day_of_week}, {today_str}.

Text to analyze:
{input_text}"""
