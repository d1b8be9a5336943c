"""Themed terminal display: console, styles and persona panels."""

from pathlib import Path

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme

from dreamsong._state import Error, Idle, Loading, Success
from dreamsong.config import settings
from dreamsong.slot import InterpreterSlot

# -- Theme palettes (keyed by theme name) ------------------------------------

_THEMES: dict[str, dict[str, str]] = {
    "dark":  {"status": "yellow",      "info": "cyan", "accent": "bold cyan", "error": "bold red", "success": "green", "warning": "orange3", "hint": "dim", "loading": "italic yellow"},
    "light": {"status": "dark_orange", "info": "blue", "accent": "bold blue", "error": "bold red", "success": "green", "warning": "orange3", "hint": "dim", "loading": "italic dark_orange"},
}

# -- Console (single instance, themed) --------------------------------------

console = Console(theme=Theme(_THEMES.get(settings.theme, _THEMES["dark"])))

# -- Indicators ------------------------------------------------------------

PROMPT_CHAR = "❯"
BULLET      = "▸"
SUCCESS     = "✦"
ERROR       = "✖"
INFO        = "◈"
LOADING     = "◌"

_INPUT_PREVIEW_CHARS = 60


def _c(role: str) -> str:
    """Resolve a semantic role to its style for the active theme."""
    return _THEMES.get(settings.theme, _THEMES["dark"]).get(role, role)


def set_theme(name: str) -> None:
    """Switch the console theme at runtime (e.g. from --theme flag)."""
    console.push_theme(Theme(_THEMES.get(name, _THEMES["dark"])))


# -- Display helpers -------------------------------------------------------


def display_status(message: str, style: str | None = None) -> None:
    """Themed bullet + message."""
    s = style or "status"
    console.print(f"[{s}]{BULLET} {message}[/{s}]")


def display_error(message: str, hint: str | None = None) -> None:
    """Red-bordered panel with optional recovery hint."""
    body = f"[bold red]{ERROR} {message}[/bold red]"
    if hint:
        body += f"\n[dim]{hint}[/dim]"
    console.print(Panel(body, border_style="red", title="Error", title_align="left"))


def display_info(message: str) -> None:
    """Themed info message."""
    console.print(f"[info]{INFO} {message}[/info]")


# -- Persona panels ----------------------------------------------------------


def resolve_image_ref(ref: str, image_dir: str | Path | None, placeholder: str) -> str:
    """Return a displayable image reference, or *placeholder* if it won't resolve.

    http(s) URLs are passed through; anything else must exist under
    *image_dir* (or relative to the cwd when no directory is configured).
    """
    if not ref:
        return placeholder
    if ref.startswith(("http://", "https://")):
        return ref
    path = Path(ref)
    if not path.is_absolute() and image_dir is not None:
        path = Path(image_dir) / path
    if path.is_file():
        return str(path)
    return placeholder


def _input_preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) > _INPUT_PREVIEW_CHARS:
        return flat[: _INPUT_PREVIEW_CHARS - 1] + "…"
    return flat


def _state_renderable(slot: InterpreterSlot, text_style: str) -> RenderableType:
    state = slot.state
    if isinstance(state, Idle):
        return Text(f"Ready — /ask {slot.persona.id}", style="hint")
    if isinstance(state, Loading):
        return Text(f"{LOADING} Receiving the message...", style="loading")
    if isinstance(state, Success):
        # Verbatim: no markup parsing, newlines kept as line breaks
        return Group(
            Text("The Interpretation:", style="bold"),
            Text(state.text, style=text_style),
        )
    if isinstance(state, Error):
        return Group(
            Text(f"{ERROR} An Error Occurred", style="error"),
            Text(state.message, style="red"),
        )
    return Text("")


def render_slot(slot: InterpreterSlot) -> Panel:
    """One persona panel: card copy, shared input preview, slot outcome."""
    persona = slot.persona
    hints = persona.presentation_hints
    border_style = str(hints.get("border_style", "accent"))
    text_style = str(hints.get("text_style", ""))

    image = resolve_image_ref(persona.image_ref, settings.image_dir, settings.image_placeholder)
    preview = _input_preview(slot.input_text)

    body = Group(
        Text(persona.display_text, style="dim"),
        Text(f"Image: {image}", style="hint"),
        Text(f'Dream: "{preview}"' if preview else "Dream: (none yet)", style="hint"),
        Text(""),
        _state_renderable(slot, text_style),
    )
    return Panel(
        body,
        title=f"[bold]{persona.name}[/bold]",
        title_align="left",
        subtitle=slot.state.label,
        subtitle_align="right",
        border_style=border_style,
    )


def render_board(slots) -> Group:
    """All persona panels stacked in registry order."""
    return Group(*(render_slot(slot) for slot in slots))
