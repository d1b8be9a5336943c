import asyncio
import logging
import time

import typer
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.live import Live
from rich.logging import RichHandler
from rich.table import Table

from dreamsong._commands import dispatch as dispatch_command, CommandContext, COMMANDS
from dreamsong._state import Error, ErrorKind, Loading, SlotState, Success
from dreamsong.banner import display_welcome_banner
from dreamsong.board import DreamBoard
from dreamsong.config import settings
from dreamsong.display import console, display_error, render_board, render_slot, set_theme, PROMPT_CHAR
from dreamsong.gemini import GeminiClient
from dreamsong.personas import load_registry
from dreamsong.slot import InterpreterSlot
from dreamsong.status import get_status, render_status_table

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Song of Dreams — one dream, many interpreters",
    context_settings={"help_option_names": ["--help", "-h"]},
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(logging.getLevelName(level), logging.WARNING))


def _create_client() -> GeminiClient:
    return GeminiClient(model=settings.gemini_model, base_url=settings.gemini_base_url)


class _OutcomeAnnouncer:
    """Print a slot's panel once per settled outcome.

    Slots also notify on shared-input writes; those leave the state object
    unchanged and print nothing. Validation errors are reported by /ask.
    """

    def __init__(self) -> None:
        self._seen: dict[str, SlotState] = {}

    def __call__(self, slot: InterpreterSlot) -> None:
        state = slot.state
        if self._seen.get(slot.persona.id) is state:
            return
        self._seen[slot.persona.id] = state
        if isinstance(state, Success) or (
            isinstance(state, Error) and state.kind is not ErrorKind.VALIDATION
        ):
            console.print(render_slot(slot))


async def chat_loop():
    board = None
    client = _create_client()
    try:
        registry = load_registry()
        board = DreamBoard(
            registry,
            client.generate,
            credential=settings.gemini_api_key,
            on_change=_OutcomeAnnouncer(),
        )
        completer = WordCompleter(
            [f"/{name}" for name in COMMANDS] + [f"/ask {pid}" for pid in registry.ids],
            sentence=True,
        )
        # In-memory only: dreams are not kept across sessions
        session = PromptSession(
            history=InMemoryHistory(),
            completer=completer,
            complete_while_typing=False,
        )

        display_welcome_banner(get_status(persona_count=len(registry)))

        cmd_ctx = CommandContext(board=board)
        last_interrupt_time = 0.0
        with patch_stdout(raw=True):
            while True:
                try:
                    user_input = await session.prompt_async(f"Dream {PROMPT_CHAR} ")
                    last_interrupt_time = 0.0  # Reset on successful input
                    if user_input.lower() in ["exit", "quit"]:
                        break
                    if not user_input.strip():
                        continue

                    # /command: slash commands
                    if await dispatch_command(user_input, cmd_ctx):
                        if cmd_ctx.exit_requested:
                            break
                        continue

                    board.set_input(user_input)
                    loading = sum(1 for slot in board if isinstance(slot.state, Loading))
                    console.print(f"[dim]Dream updated for {len(registry)} interpreters.[/dim]")
                    if loading:
                        console.print(f"[dim]{loading} still interpreting the previous dream.[/dim]")

                except EOFError:
                    break
                except (KeyboardInterrupt, asyncio.CancelledError):
                    now = time.monotonic()
                    if now - last_interrupt_time <= 2.0:
                        break
                    last_interrupt_time = now
                    console.print("\n[dim]Press Ctrl+C again to exit[/dim]")
                except Exception as e:
                    logger.exception("chat loop error")
                    console.print(f"[bold red]Error:[/bold red] {e}")
    finally:
        if board is not None:
            board.close()
        await client.aclose()


async def interpret_once(text: str, persona_ids: list[str]) -> DreamBoard:
    """Run one dream through the selected personas and wait for every slot.

    Renders the selected panels live while requests are in flight.
    """
    registry = load_registry()
    live = Live(console=console, auto_refresh=False)
    selected: list[InterpreterSlot] = []

    def _refresh(_slot: InterpreterSlot) -> None:
        if selected:
            live.update(render_board(selected), refresh=True)

    async with _create_client() as client:
        board = DreamBoard(
            registry,
            client.generate,
            credential=settings.gemini_api_key,
            on_change=_refresh,
        )
        try:
            selected.extend(board.slot(pid) for pid in persona_ids or registry.ids)
            with live:
                board.set_input(text)
                board.trigger_many(slot.persona.id for slot in selected)
                await board.wait()
                _refresh(selected[0])
        finally:
            board.close()
    return board


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log request lifecycle at DEBUG level"),
):
    """Song of Dreams — one dream, many interpreters."""
    _configure_logging("DEBUG" if verbose else settings.log_level)
    if ctx.invoked_subcommand is None:
        chat(theme=None)


@app.command()
def chat(
    theme: str = typer.Option(None, "--theme", "-t", help="Color theme: dark or light"),
):
    """Start an interactive dream session."""
    if theme:
        settings.theme = theme
        set_theme(theme)
    try:
        asyncio.run(chat_loop())
    except KeyboardInterrupt:
        pass  # Safety net: asyncio.run() may re-raise after task cancellation


@app.command()
def interpret(
    dream: str = typer.Argument(..., help="The dream to interpret"),
    persona: list[str] = typer.Option(None, "--persona", "-p", help="Persona id (repeatable); default: all"),
):
    """Interpret one dream with every (or the selected) persona and exit."""
    registry = load_registry()
    persona_ids = list(dict.fromkeys(persona or []))
    unknown = [pid for pid in persona_ids if pid not in registry]
    if unknown:
        display_error(
            f"Unknown persona: {', '.join(unknown)}",
            hint=f"Valid: {', '.join(registry.ids)}",
        )
        raise typer.Exit(code=2)

    board = asyncio.run(interpret_once(dream, persona_ids))
    slots = [board.slot(pid) for pid in persona_ids or registry.ids]
    if any(isinstance(slot.state, Error) for slot in slots):
        raise typer.Exit(code=1)


@app.command()
def personas():
    """List the built-in interpreter personas."""
    registry = load_registry()
    table = Table(title="Interpreters", border_style="accent", expand=False)
    table.add_column("Id", style="accent")
    table.add_column("Name")
    table.add_column("Description", style="dim")
    for p in registry:
        table.add_row(p.id, p.name, p.display_text)
    console.print(table)


@app.command()
def status():
    """Show configuration and environment."""
    info = get_status(persona_count=len(load_registry()))
    console.print(render_status_table(info))


if __name__ == "__main__":
    app()
