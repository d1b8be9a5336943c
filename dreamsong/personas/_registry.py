"""Persona preset registry.

Each preset pairs an instruction template (``templates/{id}.md``) with the
card copy and presentation hints shown in its panel. Order here is display
order.
"""

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, TypedDict

from pydantic import BaseModel, ConfigDict, Field


class PersonaPreset(TypedDict):
    """Static card data for one persona; the template lives on disk."""

    name: str
    description: str
    image: str
    hints: dict[str, str]


PRESETS: dict[str, PersonaPreset] = {
    "crowley": {
        "name": "Aleister Crowley",
        "description": "The Great Beast 666, Thelemic prophet, and ceremonial magician.",
        "image": "crowley.jpg",
        "hints": {"border_style": "red", "text_style": "red"},
    },
    "carl": {
        "name": "Dr. Carl",
        "description": "A renowned dream interpreter, introspective and contemplative.",
        "image": "carl.jpg",
        "hints": {"border_style": "blue", "text_style": "bright_blue"},
    },
    "freud": {
        "name": "Dr. Sigmund Freud",
        "description": "The father of psychoanalysis, dedicated to unraveling the subconscious.",
        "image": "freud.jpg",
        "hints": {"border_style": "grey50", "text_style": "grey85"},
    },
    "gawura": {
        "name": "Gawura",
        "description": "An Aboriginal healer and wise man, connected to the dreamtime.",
        "image": "gawura.jpg",
        "hints": {"border_style": "dark_goldenrod", "text_style": "wheat1"},
    },
    "pawang": {
        "name": "Pawang-Senoi",
        "description": "A Senoi Healer and Shaman, connected to the spiritual realms.",
        "image": "pawang.jpg",
        "hints": {"border_style": "green", "text_style": "pale_green1"},
    },
    "singer": {
        "name": "Singer of Dreams",
        "description": "A mystical interpreter who speaks in poetic, enigmatic verse.",
        "image": "singer.jpg",
        "hints": {"border_style": "purple", "text_style": "plum1"},
    },
    "tau": {
        "name": "Tau the Monk",
        "description": "An enlightened Tibetan practitioner of the mystic arts.",
        "image": "tau.jpg",
        "hints": {"border_style": "dark_orange", "text_style": "light_salmon1"},
    },
    "razia": {
        "name": "Razia the Mage",
        "description": "A compassionate guide steeped in Sufi philosophy and mysticism.",
        "image": "razia.jpg",
        "hints": {"border_style": "cyan", "text_style": "light_cyan1"},
    },
}


class PersonaConfig(BaseModel):
    """One interpretation voice. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    instruction_template: str
    display_text: str = ""
    image_ref: str = ""
    # Opaque to the interpretation core; only display reads it
    presentation_hints: Mapping[str, Any] = Field(default_factory=dict)


class PersonaRegistry:
    """Ordered, non-empty, id-unique persona table."""

    def __init__(self, personas: Iterable[PersonaConfig]) -> None:
        ordered = tuple(personas)
        if not ordered:
            raise ValueError("persona registry must not be empty")

        by_id: dict[str, PersonaConfig] = {}
        duplicates: list[str] = []
        for persona in ordered:
            if persona.id in by_id:
                duplicates.append(persona.id)
            by_id[persona.id] = persona
        if duplicates:
            raise ValueError(f"Duplicate persona id(s): {', '.join(sorted(set(duplicates)))}")

        self._ordered = ordered
        self._by_id = by_id

    def __iter__(self) -> Iterator[PersonaConfig]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, persona_id: object) -> bool:
        return persona_id in self._by_id

    def get(self, persona_id: str) -> PersonaConfig:
        """Return the persona with *persona_id*; raises KeyError if unknown."""
        try:
            return self._by_id[persona_id]
        except KeyError:
            raise KeyError(
                f"Unknown persona '{persona_id}'. Valid: {', '.join(self.ids)}"
            ) from None

    @property
    def ids(self) -> list[str]:
        return [p.id for p in self._ordered]
