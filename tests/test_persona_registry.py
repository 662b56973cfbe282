# tests/test_persona_registry.py
"""
Persona Registry Test Suite

Run with: python -m pytest tests/test_persona_registry.py -v
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import unittest

from companion.errors import PersonaNotFound
from companion.services.persona_registry import (
    Persona,
    PersonaRegistry,
    default_registry,
    resolve_persona,
)
from config import PERSONAS


class TestDefaultRegistry(unittest.TestCase):
    """The built-in persona table."""

    def test_five_personas_registered(self):
        self.assertEqual(set(default_registry.ids()), {"aiko", "hikari", "rin", "mei", "yuki"})

    def test_prompts_are_non_empty_and_distinct(self):
        prompts = [resolve_persona(pid) for pid in default_registry.ids()]
        for prompt in prompts:
            self.assertTrue(prompt.strip())
        self.assertEqual(len(set(prompts)), len(prompts))

    def test_resolve_returns_prompt_verbatim(self):
        self.assertEqual(resolve_persona("rin"), PERSONAS["rin"]["system_prompt"])
        self.assertIn("Rin", resolve_persona("rin"))

    def test_unknown_persona_raises(self):
        with self.assertRaises(PersonaNotFound) as ctx:
            resolve_persona("unknown-id")
        self.assertEqual(ctx.exception.persona_id, "unknown-id")
        self.assertIn("aiko", ctx.exception.available)

    def test_lookup_is_exact(self):
        """No case folding or stripping: 'Aiko' and ' aiko' are not 'aiko'."""
        for candidate in ("Aiko", " aiko", "aiko ", ""):
            with self.assertRaises(PersonaNotFound):
                default_registry.resolve(candidate)

    def test_find_returns_none_for_unknown(self):
        self.assertIsNone(default_registry.find("nobody"))
        self.assertEqual(default_registry.find("mei").name, "Mei")

    def test_membership_and_len(self):
        self.assertIn("yuki", default_registry)
        self.assertNotIn("nobody", default_registry)
        self.assertEqual(len(default_registry), 5)


class TestRegistryConstruction(unittest.TestCase):
    """Validation of custom tables."""

    def test_from_config_defaults_name_to_id(self):
        registry = PersonaRegistry.from_config({"kai": {"system_prompt": "You are Kai."}})
        self.assertEqual(registry.get("kai"), Persona(id="kai", name="kai", system_prompt="You are Kai."))

    def test_duplicate_prompt_rejected(self):
        with self.assertRaises(ValueError):
            PersonaRegistry.from_config({
                "a": {"system_prompt": "Same prompt."},
                "b": {"system_prompt": "Same prompt."},
            })

    def test_empty_prompt_rejected(self):
        with self.assertRaises(ValueError):
            PersonaRegistry.from_config({"a": {"system_prompt": "   "}})

    def test_mismatched_key_rejected(self):
        with self.assertRaises(ValueError):
            PersonaRegistry({"a": Persona(id="b", name="B", system_prompt="x")})

    def test_registry_is_read_only(self):
        table = {"kai": {"system_prompt": "You are Kai."}}
        registry = PersonaRegistry.from_config(table)
        table["kai"]["system_prompt"] = "changed"
        table["new"] = {"system_prompt": "new"}
        self.assertEqual(registry.resolve("kai"), "You are Kai.")
        self.assertNotIn("new", registry)


if __name__ == "__main__":
    unittest.main()
