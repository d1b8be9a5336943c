"""Slash command registry, handlers, and dispatch for the dream session."""

from __future__ import annotations

from collections.abc import Callable, Awaitable
from dataclasses import dataclass

from dreamsong._state import Error, ErrorKind, Loading
from dreamsong.board import DreamBoard
from dreamsong.display import console, display_error, display_info, display_status, render_board


# -- Types -----------------------------------------------------------------

@dataclass
class CommandContext:
    """Passed to every slash-command handler.

    Mutable so /exit can ask the session loop to stop.
    """

    board: DreamBoard
    exit_requested: bool = False


@dataclass(frozen=True)
class SlashCommand:
    """A registered slash command."""

    name: str
    description: str
    handler: Callable[[CommandContext, str], Awaitable[None]]


# -- Handlers --------------------------------------------------------------


async def _cmd_help(ctx: CommandContext, args: str) -> None:
    """List available slash commands."""
    from rich.table import Table

    table = Table(title="Slash Commands", border_style="accent", expand=False)
    table.add_column("Command", style="accent")
    table.add_column("Description")
    for cmd in COMMANDS.values():
        table.add_row(f"/{cmd.name}", cmd.description)
    console.print(table)
    console.print("[hint]Any other line becomes the dream every persona sees.[/hint]")


async def _cmd_dream(ctx: CommandContext, args: str) -> None:
    """Show the current shared dream text."""
    text = ctx.board.store.read()
    if not text.strip():
        console.print("[dim]No dream entered yet.[/dim]")
        return
    display_info("Current dream:")
    console.print(text, markup=False, highlight=False)


async def _cmd_ask(ctx: CommandContext, args: str) -> None:
    """Trigger one or more personas (default: all)."""
    requested = args.split()
    if not requested or requested == ["all"]:
        persona_ids = ctx.board.registry.ids
    else:
        unknown = [pid for pid in requested if pid not in ctx.board.registry]
        if unknown:
            display_error(
                f"Unknown persona: {', '.join(unknown)}",
                hint=f"Valid: {', '.join(ctx.board.registry.ids)}",
            )
            return
        persona_ids = requested

    slots = [ctx.board.slot(pid) for pid in dict.fromkeys(persona_ids)]
    started = ctx.board.trigger_many(persona_ids)
    asked = [slot.persona.name for slot in slots if slot.task in started]
    if asked:
        display_status(f"Asking {', '.join(asked)}...", style="loading")

    blank = False
    for slot in slots:
        if slot.task in started:
            continue
        state = slot.state
        if isinstance(state, Loading):
            console.print(f"[dim]{slot.persona.name} is still interpreting.[/dim]")
        elif isinstance(state, Error) and state.kind is ErrorKind.VALIDATION:
            blank = True
    if blank:
        display_error(
            "Please enter a dream to interpret.",
            hint="Type the dream on its own line, then /ask again.",
        )


async def _cmd_board(ctx: CommandContext, args: str) -> None:
    """Render every persona panel."""
    console.print(render_board(ctx.board))


async def _cmd_personas(ctx: CommandContext, args: str) -> None:
    """List persona ids and names."""
    lines = [
        f"  [accent]{p.id}[/accent]  {p.name} [dim]— {p.display_text}[/dim]"
        for p in ctx.board.registry
    ]
    display_info(f"Personas ({len(lines)}):")
    console.print("\n".join(lines))


async def _cmd_clear(ctx: CommandContext, args: str) -> None:
    """Clear the shared dream text."""
    ctx.board.set_input("")
    display_info("Dream cleared.")


async def _cmd_status(ctx: CommandContext, args: str) -> None:
    """Show configuration and environment (same as `dreamsong status`)."""
    from dreamsong.status import get_status, render_status_table

    info = get_status(persona_count=len(ctx.board.registry))
    console.print(render_status_table(info))


async def _cmd_exit(ctx: CommandContext, args: str) -> None:
    """Leave the session."""
    ctx.exit_requested = True


# -- Registry --------------------------------------------------------------

COMMANDS: dict[str, SlashCommand] = {
    "help": SlashCommand("help", "List available slash commands", _cmd_help),
    "dream": SlashCommand("dream", "Show the current dream text", _cmd_dream),
    "ask": SlashCommand("ask", "Interpret with personas: /ask [id ...|all]", _cmd_ask),
    "board": SlashCommand("board", "Show every persona panel", _cmd_board),
    "personas": SlashCommand("personas", "List personas", _cmd_personas),
    "clear": SlashCommand("clear", "Clear the dream text", _cmd_clear),
    "status": SlashCommand("status", "Show configuration and environment", _cmd_status),
    "exit": SlashCommand("exit", "Leave the session", _cmd_exit),
}


# -- Dispatch --------------------------------------------------------------


async def dispatch(raw_input: str, ctx: CommandContext) -> bool:
    """Route slash-command input to the appropriate handler.

    Returns False when the input is not a slash command (caller treats it
    as dream text), True once a command (known or not) was handled.
    """
    if not raw_input.startswith("/"):
        return False

    parts = raw_input[1:].split(maxsplit=1)
    name = parts[0].lower() if parts else ""
    args = parts[1] if len(parts) > 1 else ""

    cmd = COMMANDS.get(name)
    if cmd is None:
        console.print(f"[bold red]Unknown command:[/bold red] /{name}")
        console.print("[dim]Type /help to see available commands.[/dim]")
        return True

    await cmd.handler(ctx, args)
    return True
