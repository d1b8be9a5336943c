"""Dream board: the shared input plus one interpreter slot per persona."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

from dreamsong._input_store import SharedInputStore
from dreamsong.personas import PersonaRegistry
from dreamsong.slot import GenerateFn, InterpreterSlot


class DreamBoard:
    """Wires a registry to slots that all observe the same SharedInputStore.

    The board only builds and tears down slots and fans out triggers; every
    slot still owns its own state and request.
    """

    def __init__(
        self,
        registry: PersonaRegistry,
        generate: GenerateFn,
        *,
        credential: str = "",
        store: SharedInputStore | None = None,
        on_change: Callable[[InterpreterSlot], None] | None = None,
    ) -> None:
        self.registry = registry
        self.store = store if store is not None else SharedInputStore()
        self.slots: dict[str, InterpreterSlot] = {
            persona.id: InterpreterSlot(
                persona,
                self.store,
                generate,
                credential=credential,
                on_change=on_change,
            )
            for persona in registry
        }

    def __iter__(self):
        return iter(self.slots.values())

    def slot(self, persona_id: str) -> InterpreterSlot:
        # Registry lookup gives the descriptive KeyError
        return self.slots[self.registry.get(persona_id).id]

    def set_input(self, text: str) -> None:
        self.store.write(text)

    def trigger(self, persona_id: str) -> asyncio.Task[None] | None:
        return self.slot(persona_id).trigger()

    def trigger_many(self, persona_ids: Iterable[str]) -> list[asyncio.Task[None]]:
        """Trigger each listed slot once; returns the tasks actually started."""
        tasks = []
        for persona_id in dict.fromkeys(persona_ids):
            task = self.trigger(persona_id)
            if task is not None:
                tasks.append(task)
        return tasks

    def trigger_all(self) -> list[asyncio.Task[None]]:
        return self.trigger_many(self.registry.ids)

    @property
    def pending(self) -> list[asyncio.Task[None]]:
        return [s.task for s in self.slots.values() if s.task is not None and not s.task.done()]

    async def wait(self) -> None:
        """Wait for every in-flight slot request to settle."""
        pending = self.pending
        if pending:
            await asyncio.gather(*pending)

    def close(self) -> None:
        """Tear down every slot; late results are discarded."""
        for slot in self.slots.values():
            slot.close()
