"""Interpreter slot: one persona's request lifecycle and display state.

State machine::

    Idle/Success/Error --trigger--> Loading --completion--> Success | Error
    any state          --trigger, blank input--> Error(VALIDATION)
    Loading            --trigger--> (no-op)

Each trigger snapshots the shared input, builds the prompt from it and runs
exactly one request as an asyncio task. Slots never touch each other's
state. ``close()`` bumps the slot epoch; a result from an older epoch is
dropped silently (the transport call itself is not aborted).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from dreamsong._classifier import classify_response
from dreamsong._input_store import SharedInputStore
from dreamsong._state import ErrorKind, Error, Idle, Loading, SlotState, TransportFailure
from dreamsong.personas import PersonaConfig

logger = logging.getLogger(__name__)

PROMPT_SEPARATOR = "\n\n---\n\n"
VALIDATION_MESSAGE = "input required"


class GenerateFn(Protocol):
    def __call__(self, prompt_text: str, credential: str) -> Awaitable[Any | TransportFailure]: ...


def build_prompt(instruction_template: str, snapshot: str) -> str:
    """Instruction template followed by the dream-wrapped input."""
    return f'{instruction_template}{PROMPT_SEPARATOR}DREAM: "{snapshot}"'


class InterpreterSlot:
    """Owns one persona's SlotState; the only writer of that state."""

    def __init__(
        self,
        persona: PersonaConfig,
        store: SharedInputStore,
        generate: GenerateFn,
        *,
        credential: str = "",
        on_change: Callable[["InterpreterSlot"], None] | None = None,
    ) -> None:
        self.persona = persona
        self._store = store
        self._generate = generate
        self._credential = credential
        self._on_change = on_change
        self._state: SlotState = Idle()
        self._epoch = 0
        self._closed = False
        self._task: asyncio.Task[None] | None = None
        self._unsubscribe = store.subscribe(self._on_input_changed)

    # -- read-only views ----------------------------------------------------

    @property
    def state(self) -> SlotState:
        return self._state

    @property
    def input_text(self) -> str:
        """The shared input as this slot would render it right now."""
        return self._store.read()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def task(self) -> asyncio.Task[None] | None:
        """The most recent request task, if any."""
        return self._task

    # -- transitions --------------------------------------------------------

    def trigger(self) -> asyncio.Task[None] | None:
        """Start one interpretation request for the current shared input.

        Must be called from a running event loop. Returns the request task,
        or ``None`` when nothing was sent (already loading, blank input,
        slot closed).
        """
        if self._closed:
            logger.debug("trigger ignored on closed slot %s", self.persona.id)
            return None
        if isinstance(self._state, Loading):
            logger.debug("trigger ignored, %s already loading", self.persona.id)
            return None

        snapshot = self._store.read()
        if not snapshot.strip():
            logger.info("slot %s rejected blank input", self.persona.id)
            self._set_state(Error(ErrorKind.VALIDATION, VALIDATION_MESSAGE))
            return None

        prompt_text = build_prompt(self.persona.instruction_template, snapshot)
        self._set_state(Loading())
        logger.info("slot %s requesting interpretation (%d chars)", self.persona.id, len(snapshot))
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._epoch, prompt_text),
            name=f"interpret-{self.persona.id}",
        )
        return self._task

    async def _run(self, epoch: int, prompt_text: str) -> None:
        try:
            result = await self._generate(prompt_text, self._credential)
        except Exception as e:
            logger.exception("slot %s: generate raised", self.persona.id)
            result = TransportFailure(detail=str(e) or type(e).__name__)

        if self._closed or epoch != self._epoch:
            logger.debug("slot %s discarding late result", self.persona.id)
            return

        outcome = classify_response(result)
        logger.info("slot %s finished: %s", self.persona.id, outcome.label)
        self._set_state(outcome)

    def close(self) -> None:
        """Tear down: stop listening and ignore any in-flight result."""
        if self._closed:
            return
        self._closed = True
        self._epoch += 1
        self._unsubscribe()

    # -- internals ----------------------------------------------------------

    def _set_state(self, state: SlotState) -> None:
        self._state = state
        self._notify()

    def _on_input_changed(self, _text: str) -> None:
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
