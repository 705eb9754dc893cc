"""Persona catalog: built-in personas plus user-defined ones.

Sessions refer to personas by id. Resolution never fails: an unknown or
deleted id falls back to the default persona.
"""

import logging

import pydantic

from ..config import PERSONAS_KEY
from ..errors import PersistenceError, ValidationError
from ..store import KeyValueStore
from .models import BUILTIN_PERSONAS, DEFAULT_PERSONA_ID, Persona

logger = logging.getLogger(__name__)


class PersonaCatalog:
    """Immutable built-in personas merged with user-defined personas."""

    def __init__(self, store: KeyValueStore, key: str = PERSONAS_KEY):
        self._store = store
        self._key = key
        self._custom: dict[str, Persona] = {}

    async def load(self) -> None:
        """Load user-defined personas; unreadable entries are skipped."""
        try:
            data = await self._store.get(self._key)
        except PersistenceError as e:
            logger.error("Failed to load personas: %s", e)
            return
        if data is not None and not isinstance(data, dict):
            logger.warning("Ignoring personas stored as %s", type(data).__name__)
            data = None

        self._custom = {}
        for entry in (data or {}).values():
            try:
                persona = Persona.model_validate(entry)
            except pydantic.ValidationError as e:
                logger.warning("Skipping invalid persona entry: %s", e)
                continue
            if persona.id not in BUILTIN_PERSONAS:
                self._custom[persona.id] = persona

    def all(self) -> dict[str, Persona]:
        return {**BUILTIN_PERSONAS, **self._custom}

    def __contains__(self, persona_id: str) -> bool:
        return persona_id in BUILTIN_PERSONAS or persona_id in self._custom

    @property
    def default(self) -> Persona:
        return BUILTIN_PERSONAS[DEFAULT_PERSONA_ID]

    def resolve(self, persona_id: str | None) -> Persona:
        """Look up a persona by id, falling back to the default persona."""
        if persona_id in BUILTIN_PERSONAS:
            return BUILTIN_PERSONAS[persona_id]
        if persona_id in self._custom:
            return self._custom[persona_id]
        if persona_id is not None:
            logger.info("Persona %r not found, using default", persona_id)
        return self.default

    async def add(self, persona: Persona) -> None:
        """Register or replace a user-defined persona.

        Raises:
            ValidationError: If the id shadows a built-in persona or a field is blank
        """
        if persona.id in BUILTIN_PERSONAS:
            raise ValidationError(f"'{persona.id}' is a built-in persona")
        if not persona.id.strip() or not persona.name.strip() or not persona.instruction.strip():
            raise ValidationError("Persona id, name and instruction are required")
        self._custom[persona.id] = persona
        await self._persist()

    async def remove(self, persona_id: str) -> None:
        """Delete a user-defined persona; sessions using it fall back to the default.

        Raises:
            ValidationError: If the persona is built in
        """
        if persona_id in BUILTIN_PERSONAS:
            raise ValidationError(f"'{persona_id}' is a built-in persona and cannot be removed")
        if self._custom.pop(persona_id, None) is not None:
            await self._persist()

    async def _persist(self) -> None:
        payload = {pid: p.model_dump(mode="json") for pid, p in self._custom.items()}
        try:
            await self._store.set(self._key, payload)
        except PersistenceError as e:
            logger.error("Failed to save personas: %s", e)
