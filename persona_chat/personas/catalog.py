"""Persona catalog: the read-mostly reference list users pick from."""

import logging
import re
import time

from persona_chat.models import AIGeneratedPersona, Persona

logger = logging.getLogger(__name__)

DEFAULT_PERSONAS: list[Persona] = [
    Persona(
        id="ada-lovelace",
        name="Ada Lovelace",
        description="Mathematician who wrote the first published algorithm for Babbage's Analytical Engine.",
        category="Historical Figure",
    ),
    Persona(
        id="sherlock-holmes",
        name="Sherlock Holmes",
        description="The consulting detective of 221B Baker Street, famous for his powers of deduction.",
        category="Fictional Character",
    ),
    Persona(
        id="marie-curie",
        name="Marie Curie",
        description="Physicist and chemist, the first person to win Nobel Prizes in two sciences.",
        category="Scientist/Inventor",
    ),
    Persona(
        id="socrates",
        name="Socrates",
        description="Athenian philosopher who taught by asking questions.",
        category="Philosopher",
    ),
    Persona(
        id="pikachu",
        name="Pikachu",
        description="A cheerful electric-type Pokemon and loyal companion.",
        category="Anime Character",
    ),
]


def persona_id_for(name: str) -> str:
    """Build an id for an AI-suggested persona (``ai-<epoch-ms>-<slug>``)."""
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return f"ai-{int(time.time() * 1000)}-{slug}"


class PersonaCatalog:
    """In-memory persona catalog seeded with ``DEFAULT_PERSONAS``."""

    def __init__(self, personas: list[Persona] | None = None) -> None:
        seed = DEFAULT_PERSONAS if personas is None else personas
        self._personas: dict[str, Persona] = {p.id: p.model_copy() for p in seed}

    def find(self, category: str | None = None, term: str | None = None) -> list[Persona]:
        """Return personas sorted by name, optionally filtered.

        Args:
            category: Case-insensitive category; ``None`` or ``"all"`` keeps all.
            term: Case-insensitive substring of name or description.
        """
        needle = (term or "").strip().lower()
        wanted = (category or "all").lower()
        result = []
        for persona in self._personas.values():
            if wanted != "all" and persona.category.lower() != wanted:
                continue
            if needle and needle not in persona.name.lower() and needle not in persona.description.lower():
                continue
            result.append(persona)
        return sorted(result, key=lambda p: p.name)

    def categories(self) -> list[str]:
        return sorted({p.category for p in self._personas.values()})

    def get(self, persona_id: str) -> Persona | None:
        return self._personas.get(persona_id)

    def add(self, persona: Persona) -> Persona:
        self._personas[persona.id] = persona
        logger.info(f"Added persona {persona.id}")
        return persona

    def add_generated(self, suggestion: AIGeneratedPersona) -> Persona:
        """Turn a validated AI suggestion into a catalog persona."""
        persona = Persona(
            id=persona_id_for(suggestion.name),
            name=suggestion.name,
            description=suggestion.description,
            category=suggestion.category,
        )
        return self.add(persona)


_catalog: PersonaCatalog | None = None


def get_persona_catalog() -> PersonaCatalog:
    """Get or create the global persona catalog."""
    global _catalog
    if _catalog is None:
        _catalog = PersonaCatalog()
    return _catalog
