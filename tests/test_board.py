"""Functional tests for the dream board: shared input fan-out and slot independence."""

import asyncio

import pytest

from dreamsong._classifier import SAFETY_BLOCKED_MESSAGE
from dreamsong._state import Error, ErrorKind, Idle, Loading, Success
from dreamsong.board import DreamBoard
from dreamsong.personas import PersonaConfig, PersonaRegistry


PERMISSIVE = "You are A. Interpret everything:"
STRICT = "You are B. Be careful:"


def _registry() -> PersonaRegistry:
    return PersonaRegistry([
        PersonaConfig(id="a", name="A", instruction_template=PERMISSIVE),
        PersonaConfig(id="b", name="B", instruction_template=STRICT),
    ])


class ScriptedGenerate:
    """Answers per instruction template, after per-template gates open."""

    def __init__(self, replies: dict[str, object]) -> None:
        self.replies = replies
        self.gates = {template: asyncio.Event() for template in replies}
        self.prompts: list[str] = []

    async def __call__(self, prompt_text: str, credential: str):
        self.prompts.append(prompt_text)
        template = next(t for t in self.replies if prompt_text.startswith(t))
        await self.gates[template].wait()
        return self.replies[template]


@pytest.mark.asyncio
async def test_concurrent_success_and_safety_block_are_independent():
    generate = ScriptedGenerate({
        PERMISSIVE: {"candidates": [{"content": {"parts": [{"text": "You soar above your ambitions."}]}}]},
        STRICT: {"candidates": [{"finishReason": "SAFETY"}]},
    })
    board = DreamBoard(_registry(), generate)
    board.set_input("I was flying over a city")

    tasks = board.trigger_all()
    assert len(tasks) == 2
    assert board.slot("a").state == Loading()
    assert board.slot("b").state == Loading()

    # B settles first; A must still be loading
    generate.gates[STRICT].set()
    await tasks[1]
    assert board.slot("b").state == Error(ErrorKind.SAFETY_BLOCKED, SAFETY_BLOCKED_MESSAGE)
    assert board.slot("a").state == Loading()

    generate.gates[PERMISSIVE].set()
    await board.wait()
    assert board.slot("a").state == Success("You soar above your ambitions.")
    assert board.slot("b").state == Error(ErrorKind.SAFETY_BLOCKED, SAFETY_BLOCKED_MESSAGE)
    assert sorted(generate.prompts) == sorted([
        f'{PERMISSIVE}\n\n---\n\nDREAM: "I was flying over a city"',
        f'{STRICT}\n\n---\n\nDREAM: "I was flying over a city"',
    ])


@pytest.mark.asyncio
async def test_trigger_one_slot_leaves_others_idle():
    generate = ScriptedGenerate({PERMISSIVE: {}, STRICT: {}})
    board = DreamBoard(_registry(), generate)
    board.set_input("dream")

    task = board.trigger("a")
    assert board.slot("a").state == Loading()
    assert board.slot("b").state == Idle()

    generate.gates[PERMISSIVE].set()
    await task
    assert board.slot("a").state.kind == ErrorKind.MALFORMED_RESPONSE
    assert board.slot("b").state == Idle()


def test_every_slot_sees_the_shared_input():
    board = DreamBoard(_registry(), ScriptedGenerate({}))
    seen = []
    board2 = DreamBoard(
        _registry(), ScriptedGenerate({}), store=board.store,
        on_change=lambda slot: seen.append((slot.persona.id, slot.input_text)),
    )
    board.set_input("teeth falling out")
    assert [slot.input_text for slot in board] == ["teeth falling out"] * 2
    assert seen == [("a", "teeth falling out"), ("b", "teeth falling out")]
    assert board2.store is board.store


@pytest.mark.asyncio
async def test_trigger_many_dedupes_and_skips_loading():
    generate = ScriptedGenerate({PERMISSIVE: {}, STRICT: {}})
    board = DreamBoard(_registry(), generate)
    board.set_input("dream")

    first = board.trigger_many(["a", "a"])
    assert len(first) == 1
    second = board.trigger_many(["a", "b"])
    assert [t.get_name() for t in second] == ["interpret-b"]

    for gate in generate.gates.values():
        gate.set()
    await board.wait()
    assert board.pending == []


def test_unknown_persona_raises_key_error():
    board = DreamBoard(_registry(), ScriptedGenerate({}))
    with pytest.raises(KeyError, match="Unknown persona 'zed'"):
        board.slot("zed")


@pytest.mark.asyncio
async def test_close_discards_in_flight_results_for_every_slot():
    generate = ScriptedGenerate({
        PERMISSIVE: {"candidates": [{"content": {"parts": [{"text": "late"}]}}]},
        STRICT: {"candidates": [{"content": {"parts": [{"text": "late"}]}}]},
    })
    board = DreamBoard(_registry(), generate)
    board.set_input("dream")
    tasks = board.trigger_all()

    board.close()
    for gate in generate.gates.values():
        gate.set()
    await asyncio.gather(*tasks)

    assert all(slot.state == Loading() for slot in board)
    assert board.store.listener_count == 0
