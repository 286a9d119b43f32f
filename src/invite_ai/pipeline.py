"""Pipeline orchestrator for the text-to-invite workflow.

Wires all components together for one request: prompt building, the
completion call, response parsing, default filling, calendar encoding, and
the hand-off to the save-and-open sink.  The entry point is
:meth:`InviteOrchestrator.create_invite`, which never raises for a pipeline
failure: it returns an :class:`InviteResult` carrying either the created
event, a "no event" outcome, or a classified error.

State machine::

    IDLE -> EXTRACTING -> (NO_EVENT | EXTRACTED) -> ENCODING -> SAVING
         -> (DONE | FAILED) -> IDLE

Steps run strictly one after another and only one request may be in flight
per orchestrator.  There is no retry, timeout, or cancellation.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from invite_ai.credentials import CredentialCache, SecretProvider
from invite_ai.defaults import apply_event_defaults
from invite_ai.errors import USER_MESSAGES, ClassifiedError, ErrorKind, classify_error
from invite_ai.exceptions import PipelineBusyError
from invite_ai.host import CalendarSink
from invite_ai.ics import encode_event
from invite_ai.llm import CompletionClient
from invite_ai.models.event import ExtractionOutcome, NoEventDetected, NormalizedEvent
from invite_ai.parser import JsonSubstringParser, ResponseParser
from invite_ai.prompts import build_extraction_prompt

logger = logging.getLogger(__name__)


class PipelineState(str, enum.Enum):
    """Lifecycle states of a single request."""

    IDLE = "idle"
    EXTRACTING = "extracting"
    NO_EVENT = "no_event"
    EXTRACTED = "extracted"
    ENCODING = "encoding"
    SAVING = "saving"
    DONE = "done"
    FAILED = "failed"


_BUSY_STATES = frozenset(
    {
        PipelineState.EXTRACTING,
        PipelineState.EXTRACTED,
        PipelineState.ENCODING,
        PipelineState.SAVING,
    }
)

EMPTY_INPUT_MESSAGE = "Please enter some text"
SUCCESS_MESSAGE = "Invite created"


@dataclass
class InviteResult:
    """Outcome of one :meth:`InviteOrchestrator.create_invite` call.

    Attributes:
        status: ``"created"``, ``"no_event"``, ``"failed"`` or
            ``"empty_input"``.
        message: Text to show the user.
        event: The normalized event, when one was extracted.
        ics: The encoded calendar text, when encoding ran.
        sink_message: What the save-and-open sink reported on success.
        error: The classified failure, for ``"failed"`` results.
        transitions: Every state the request passed through, in order.
    """

    status: Literal["created", "no_event", "failed", "empty_input"]
    message: str
    event: NormalizedEvent | None = None
    ics: str | None = None
    sink_message: str | None = None
    error: ClassifiedError | None = None
    transitions: list[PipelineState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Whether an invite was created."""
        return self.status == "created"


class InviteOrchestrator:
    """Run the extraction-normalization-encoding pipeline for one request.

    Args:
        completion_client: The completion service.
        secret_provider: Source of the completion-service credential.  It is
            consulted at most once per orchestrator.
        sink: Where the encoded calendar text is saved and opened.
        parser: Completion-text parser.  Defaults to
            :class:`~invite_ai.parser.JsonSubstringParser`.
        clock: Returns the current local time.  Defaults to
            :meth:`datetime.now`.
    """

    def __init__(
        self,
        completion_client: CompletionClient,
        secret_provider: SecretProvider,
        sink: CalendarSink,
        parser: ResponseParser | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = completion_client
        self._credentials = CredentialCache(secret_provider)
        self._sink = sink
        self._parser = parser or JsonSubstringParser()
        self._clock = clock or datetime.now
        self._state = PipelineState.IDLE
        self._transitions: list[PipelineState] = []

    @property
    def state(self) -> PipelineState:
        """The current pipeline state."""
        return self._state

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract_event(self, text: str) -> ExtractionOutcome:
        """Extract and normalize an event from *text* without saving it.

        Raises:
            InviteError: Any tagged failure from the credential, completion,
                or parsing steps.
        """
        now = self._clock()
        credential = await self._credentials.get()

        prompt = build_extraction_prompt(text, today=now.date())
        logger.info("Requesting event extraction (%d chars of input)", len(text))
        raw = await self._client.complete(prompt, credential)

        parsed = self._parser.parse(raw)
        if isinstance(parsed, NoEventDetected):
            return parsed
        return apply_event_defaults(parsed, text, today=now.date())

    async def create_invite(self, text: str) -> InviteResult:
        """Turn *text* into a calendar invite and hand it to the sink.

        Args:
            text: Free-form text describing the event.

        Returns:
            An :class:`InviteResult`.  Pipeline failures are reported in the
            result, never raised.

        Raises:
            PipelineBusyError: If another request is still in flight.
        """
        if self._state in _BUSY_STATES:
            raise PipelineBusyError(f"A request is already in progress ({self._state.value})")

        text = text.strip()
        if not text:
            return InviteResult(status="empty_input", message=EMPTY_INPUT_MESSAGE)

        self._transitions = []
        try:
            return await self._run(text)
        except Exception as exc:
            self._enter(PipelineState.FAILED)
            classified = classify_error(exc)
            logger.error(
                "Invite creation failed [%s]: %s", classified.kind.value, classified.detail
            )
            return InviteResult(
                status="failed",
                message=classified.message,
                error=classified,
                transitions=self._finish(),
            )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run(self, text: str) -> InviteResult:
        self._enter(PipelineState.EXTRACTING)
        outcome = await self.extract_event(text)

        if isinstance(outcome, NoEventDetected):
            self._enter(PipelineState.NO_EVENT)
            logger.info("No event detected: %s", outcome.reason or "no reason given")
            return InviteResult(
                status="no_event",
                message=USER_MESSAGES[ErrorKind.NO_EVENT_DETECTED],
                transitions=self._finish(),
            )

        self._enter(PipelineState.EXTRACTED)

        self._enter(PipelineState.ENCODING)
        ics = encode_event(outcome, now=self._clock())

        self._enter(PipelineState.SAVING)
        sink_message = await self._sink.save_and_open(ics)

        self._enter(PipelineState.DONE)
        logger.info("Invite created for '%s'", outcome.title)
        return InviteResult(
            status="created",
            message=SUCCESS_MESSAGE,
            event=outcome,
            ics=ics,
            sink_message=sink_message,
            transitions=self._finish(),
        )

    def _enter(self, state: PipelineState) -> None:
        logger.debug("Pipeline state: %s -> %s", self._state.value, state.value)
        self._state = state
        self._transitions.append(state)

    def _finish(self) -> list[PipelineState]:
        self._enter(PipelineState.IDLE)
        return list(self._transitions)
