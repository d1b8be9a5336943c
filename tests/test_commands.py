"""Functional tests for slash commands against a real board."""

import asyncio

import pytest
from rich.console import Console
from rich.theme import Theme

from dreamsong import _commands, display
from dreamsong._commands import COMMANDS, CommandContext, dispatch
from dreamsong._state import Loading, Success
from dreamsong.board import DreamBoard
from dreamsong.config import Settings
from dreamsong.personas import load_registry


class ParkedGenerate:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.release = asyncio.Event()

    async def __call__(self, prompt_text: str, credential: str):
        self.calls.append(prompt_text)
        await self.release.wait()
        return {"candidates": [{"content": {"parts": [{"text": "an interpretation"}]}}]}


@pytest.fixture
def console(monkeypatch) -> Console:
    recording = Console(
        record=True, force_terminal=False, color_system=None, width=120,
        theme=Theme(display._THEMES["dark"]),
    )
    monkeypatch.setattr(_commands, "console", recording)
    monkeypatch.setattr(display, "console", recording)
    monkeypatch.setattr(display, "settings", Settings())
    return recording


def _ctx() -> tuple[CommandContext, ParkedGenerate]:
    generate = ParkedGenerate()
    return CommandContext(board=DreamBoard(load_registry(), generate)), generate


@pytest.mark.asyncio
async def test_plain_text_is_not_a_command(console):
    ctx, _ = _ctx()
    assert await dispatch("I dreamt of rivers", ctx) is False


@pytest.mark.asyncio
async def test_unknown_command_is_reported(console):
    ctx, _ = _ctx()
    assert await dispatch("/nope", ctx) is True
    assert "Unknown command" in console.export_text()


@pytest.mark.asyncio
async def test_help_lists_every_command(console):
    ctx, _ = _ctx()
    await dispatch("/help", ctx)
    out = console.export_text()
    for name in COMMANDS:
        assert f"/{name}" in out


@pytest.mark.asyncio
async def test_ask_selected_personas(console):
    ctx, generate = _ctx()
    ctx.board.set_input("a snake in the garden")

    await dispatch("/ask carl tau", ctx)
    await asyncio.sleep(0)

    assert ctx.board.slot("carl").state == Loading()
    assert ctx.board.slot("tau").state == Loading()
    assert ctx.board.slot("freud").state.label == "idle"
    assert len(generate.calls) == 2
    assert f"{display.BULLET} Asking Dr. Carl, Tau the Monk..." in console.export_text()

    generate.release.set()
    await ctx.board.wait()
    assert ctx.board.slot("carl").state == Success("an interpretation")


@pytest.mark.asyncio
async def test_ask_without_args_triggers_all(console):
    ctx, generate = _ctx()
    ctx.board.set_input("dream")
    await dispatch("/ask", ctx)
    await asyncio.sleep(0)
    assert len(generate.calls) == len(ctx.board.registry)
    generate.release.set()
    await ctx.board.wait()


@pytest.mark.asyncio
async def test_ask_while_loading_reports_and_does_not_resend(console):
    ctx, generate = _ctx()
    ctx.board.set_input("dream")
    await dispatch("/ask carl", ctx)
    await dispatch("/ask carl", ctx)
    await asyncio.sleep(0)
    assert len(generate.calls) == 1
    assert "Dr. Carl is still interpreting." in console.export_text()
    generate.release.set()
    await ctx.board.wait()


@pytest.mark.asyncio
async def test_ask_with_blank_dream_shows_one_error(console):
    ctx, generate = _ctx()
    await dispatch("/ask", ctx)
    out = console.export_text()
    assert out.count("Please enter a dream to interpret.") == 1
    assert generate.calls == []


@pytest.mark.asyncio
async def test_ask_unknown_persona(console):
    ctx, generate = _ctx()
    ctx.board.set_input("dream")
    await dispatch("/ask zed", ctx)
    out = console.export_text()
    assert "Unknown persona: zed" in out
    assert generate.calls == []


@pytest.mark.asyncio
async def test_clear_and_dream(console):
    ctx, _ = _ctx()
    ctx.board.set_input("[odd] brackets")
    await dispatch("/dream", ctx)
    out = console.export_text()
    assert f"{display.INFO} Current dream:" in out
    assert "[odd] brackets" in out

    await dispatch("/clear", ctx)
    assert ctx.board.store.read() == ""
    assert f"{display.INFO} Dream cleared." in console.export_text()
    await dispatch("/dream", ctx)
    assert "No dream entered yet." in console.export_text()


@pytest.mark.asyncio
async def test_personas_and_board(console):
    ctx, _ = _ctx()
    await dispatch("/personas", ctx)
    await dispatch("/board", ctx)
    out = console.export_text()
    assert "Razia the Mage" in out
    assert out.count("Gawura") >= 2


@pytest.mark.asyncio
async def test_exit_sets_flag(console):
    ctx, _ = _ctx()
    await dispatch("/exit", ctx)
    assert ctx.exit_requested is True


@pytest.mark.asyncio
async def test_status_reports_anonymous_credential(console, monkeypatch):
    from dreamsong import status

    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("DREAMSONG_IMAGE_DIR", raising=False)
    monkeypatch.setattr(status, "settings", Settings())
    ctx, _ = _ctx()
    await dispatch("/status", ctx)
    out = console.export_text()
    assert "Anonymous" in out
    assert "Placeholder Only" in out
    assert "8" in out
