"""Completion-text parser.

Turns the raw text returned by the completion service into an
:class:`~invite_ai.models.event.EventDraft` or a
:class:`~invite_ai.models.event.NoEventDetected` signal.

Completion services occasionally wrap the JSON object in prose or markdown
code fences, so :class:`JsonSubstringParser` takes the greedy span from the
first ``{`` to the last ``}`` instead of requiring a strict JSON reply.  The
strategy sits behind the small :class:`ResponseParser` protocol so a stricter
structured-output parser can replace it without touching the pipeline.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol, Union

from pydantic import ValidationError

from invite_ai.exceptions import MalformedResponseError
from invite_ai.models.event import EventDraft, NoEventDetected

logger = logging.getLogger(__name__)

ParseResult = Union[EventDraft, NoEventDetected]

_NONE_TOKENS = frozenset({"none", '"none"'})


class ResponseParser(Protocol):
    """Anything that can turn completion text into a draft or "no event"."""

    def parse(self, raw: str) -> ParseResult:
        """Parse *raw* completion text.

        Raises:
            MalformedResponseError: If *raw* is unusable.
        """
        ...


class JsonSubstringParser:
    """Parse the outermost ``{...}`` span of the completion text."""

    def parse(self, raw: str) -> ParseResult:
        """Parse raw completion text into an :class:`EventDraft`.

        Steps:

        1. A reply that is exactly ``none`` or ``"none"`` (any case, after
           trimming) means no event.
        2. The text from the first ``{`` to the last ``}`` is decoded as a
           JSON object and validated as an :class:`EventDraft`.
        3. If that fails, a ``none`` anywhere in the reply still means no
           event; otherwise the reply is malformed.
        4. A draft without a usable title means no event.

        Args:
            raw: The completion text.

        Returns:
            The parsed draft, or :class:`NoEventDetected`.

        Raises:
            MalformedResponseError: If the reply is neither ``none`` nor a
                parseable event object and contains no ``none`` cue.
        """
        text = raw.strip()
        if text.lower() in _NONE_TOKENS:
            logger.info("Completion service reported no event")
            return NoEventDetected(reason="completion returned none")

        try:
            draft = self._decode(text)
        except (ValueError, ValidationError) as exc:
            if "none" in raw.lower():
                logger.info("Unparseable reply contains a 'none' cue, treating as no event")
                return NoEventDetected(reason="unparseable reply with none cue")
            logger.warning("Failed to parse completion reply: %s", exc)
            raise MalformedResponseError(
                f"Failed to parse AI response: {exc}", raw_response=raw
            ) from exc

        if not draft.title:
            logger.info("Parsed event has no title, treating as no event")
            return NoEventDetected(reason="missing title")

        logger.debug("Parsed draft: %s", draft.model_dump())
        return draft

    @staticmethod
    def _decode(text: str) -> EventDraft:
        start = text.find("{")
        end = text.rfind("}")
        if start < 0 or end < start:
            raise ValueError("No JSON object found in reply")

        data = json.loads(text[start : end + 1])
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        return EventDraft.model_validate(data)


_default_parser = JsonSubstringParser()


def parse_completion(raw: str) -> ParseResult:
    """Parse *raw* with the default :class:`JsonSubstringParser`."""
    return _default_parser.parse(raw)
