"""Environment / configuration checks and status table rendering."""

import tomllib
from dataclasses import dataclass
from pathlib import Path

from rich.table import Table

from dreamsong.config import settings, project_config_path


_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


@dataclass
class StatusInfo:
    version: str
    cwd: str  # basename
    llm_provider: str  # "Gemini (model)"
    endpoint: str
    credential: str  # "configured" | "anonymous"
    theme: str
    images: str  # "configured" | "missing" | "placeholder only"
    image_detail: str
    persona_count: int
    project_config: str | None  # path to .dreamsong/settings.json or None


def get_status(persona_count: int = 0) -> StatusInfo:
    """Gather status into a plain dataclass (no display side-effects)."""

    # -- version --
    version = tomllib.loads(_PYPROJECT.read_text())["project"]["version"]

    # -- images --
    if settings.image_dir:
        image_path = Path(settings.image_dir).expanduser()
        images = "configured" if image_path.is_dir() else "missing"
        image_detail = str(image_path)
    else:
        images = "placeholder only"
        image_detail = settings.image_placeholder

    return StatusInfo(
        version=version,
        cwd=Path.cwd().name,
        llm_provider=f"Gemini ({settings.gemini_model})",
        endpoint=settings.gemini_base_url,
        credential="configured" if settings.gemini_api_key else "anonymous",
        theme=settings.theme,
        images=images,
        image_detail=image_detail,
        persona_count=persona_count,
        project_config=str(project_config_path) if project_config_path else None,
    )


def render_status_table(info: StatusInfo) -> Table:
    """Build a Rich Table from StatusInfo using semantic styles."""
    table = Table(title=f"Song of Dreams v{info.version} (Provider: {info.llm_provider})")
    table.add_column("Component", style="accent")
    table.add_column("Status", style="info")
    table.add_column("Details", style="success")

    table.add_row("LLM", info.credential.title(), info.llm_provider)
    table.add_row("Endpoint", "", info.endpoint)
    table.add_row("Personas", str(info.persona_count), "")
    table.add_row("Images", info.images.title(), info.image_detail)
    table.add_row("Theme", info.theme.title(), "")
    table.add_row("Directory", "", info.cwd)
    if info.project_config:
        table.add_row("Project Config", "Active", info.project_config)
    return table
