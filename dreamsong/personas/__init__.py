"""Built-in dream interpreter personas.

Instruction templates are markdown files under ``templates/``; card copy and
presentation hints come from the preset table in ``_registry``.
"""

from pathlib import Path

from dreamsong.personas._registry import (
    PRESETS,
    PersonaConfig,
    PersonaRegistry,
)

__all__ = [
    "PRESETS",
    "PersonaConfig",
    "PersonaRegistry",
    "load_instruction_template",
    "load_registry",
]

_TEMPLATES_DIR = Path(__file__).parent / "templates"


def load_instruction_template(persona_id: str) -> str:
    """Return the instruction template for a preset.

    Raises:
        KeyError: If persona_id is not a registered preset.
        FileNotFoundError: If the template file is missing.
    """
    _ = PRESETS[persona_id]
    path = _TEMPLATES_DIR / f"{persona_id}.md"
    if not path.exists():
        raise FileNotFoundError(f"Instruction template not found: {path}")
    return path.read_text(encoding="utf-8").strip()


def load_registry() -> PersonaRegistry:
    """Build the registry of every built-in persona, in preset order."""
    return PersonaRegistry(
        PersonaConfig(
            id=persona_id,
            name=preset["name"],
            instruction_template=load_instruction_template(persona_id),
            display_text=preset["description"],
            image_ref=preset["image"],
            presentation_hints=dict(preset["hints"]),
        )
        for persona_id, preset in PRESETS.items()
    )
