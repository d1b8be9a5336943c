"""Welcome banner for the dream session."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.panel import Panel

from dreamsong.config import settings
from dreamsong.display import console, _c

if TYPE_CHECKING:
    from dreamsong.status import StatusInfo

ASCII_ART = {
    "dark": [
        "    ☾  S O N G   O F   D R E A M S  ☽",
    ],
    "light": [
        "    ~  Song of Dreams  ~",
    ],
}


def display_welcome_banner(info: StatusInfo) -> None:
    """Render welcome banner with title art, model, and persona count."""
    accent = _c("accent")
    art = "\n".join(ASCII_ART.get(settings.theme, ASCII_ART["dark"]))

    lines = [
        f"\n[{accent}]{art}[/{accent}]\n",
        f"    v{info.version} — Gems of Insight from Beyond the Veil",
        f"    Model: [{accent}]{info.llm_provider}[/{accent}]",
        f"    Personas: {info.persona_count}  Credential: {info.credential}",
        "",
        "    [dim]Type your dream, then /ask to interpret it. /help for commands, 'exit' to quit[/dim]",
    ]
    console.print(Panel("\n".join(lines), border_style=accent, expand=False))
