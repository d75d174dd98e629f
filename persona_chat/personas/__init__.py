"""Persona catalog shared by the API and the UI."""

from persona_chat.personas.catalog import (
    DEFAULT_PERSONAS,
    PersonaCatalog,
    get_persona_catalog,
    persona_id_for,
)

__all__ = ["DEFAULT_PERSONAS", "PersonaCatalog", "get_persona_catalog", "persona_id_for"]
