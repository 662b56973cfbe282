"""
PERSONA REGISTRY MODULE
=======================

Maps a persona id (what the client sends, e.g. "aiko") to that character's
system prompt. The table comes from config.PERSONAS, is loaded once, and is
read-only afterwards, so it is safe to share between concurrent requests
without locking.

Lookups are exact: no case folding, no stripping, no fallback persona. An
unknown id raises PersonaNotFound so the caller always learns that the
character they asked for does not exist.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from companion.errors import PersonaNotFound
from config import PERSONAS


@dataclass(frozen=True)
class Persona:
    id: str
    name: str
    system_prompt: str


class PersonaRegistry:
    """Immutable id -> Persona table with a raising and a non-raising lookup."""

    def __init__(self, personas: Mapping[str, Persona]):
        prompts = set()
        for persona_id, persona in personas.items():
            if not persona_id or persona_id != persona.id:
                raise ValueError(f"Persona key {persona_id!r} does not match id {persona.id!r}")
            if not persona.system_prompt.strip():
                raise ValueError(f"Persona {persona_id!r} has an empty system prompt")
            if persona.system_prompt in prompts:
                raise ValueError(f"Persona {persona_id!r} duplicates another persona's prompt")
            prompts.add(persona.system_prompt)
        self._personas = MappingProxyType(dict(personas))

    @classmethod
    def from_config(cls, table: Mapping[str, Mapping[str, str]]) -> "PersonaRegistry":
        """Build a registry from a {id: {"name": ..., "system_prompt": ...}} table."""
        personas: Dict[str, Persona] = {}
        for persona_id, entry in table.items():
            personas[persona_id] = Persona(
                id=persona_id,
                name=entry.get("name", persona_id),
                system_prompt=entry["system_prompt"],
            )
        return cls(personas)

    def find(self, persona_id: str) -> Optional[Persona]:
        return self._personas.get(persona_id)

    def get(self, persona_id: str) -> Persona:
        persona = self._personas.get(persona_id)
        if persona is None:
            raise PersonaNotFound(persona_id, available=self._personas.keys())
        return persona

    def resolve(self, persona_id: str) -> str:
        """Return the persona's system prompt verbatim, or raise PersonaNotFound."""
        return self.get(persona_id).system_prompt

    def ids(self) -> List[str]:
        return list(self._personas.keys())

    def personas(self) -> List[Persona]:
        return list(self._personas.values())

    def __contains__(self, persona_id: object) -> bool:
        return persona_id in self._personas

    def __iter__(self) -> Iterator[str]:
        return iter(self._personas)

    def __len__(self) -> int:
        return len(self._personas)


# Built once at import time from the static table in config.py.
default_registry = PersonaRegistry.from_config(PERSONAS)


def resolve_persona(persona_id: str) -> str:
    """Resolve against the default registry (config.PERSONAS)."""
    return default_registry.resolve(persona_id)
