"""A user's personal character library (JSON import and CRUD)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from tavern.errors import CharacterNotFoundError, PayloadValidationError
from tavern.infra.storage.character_repository import CharacterRepository
from tavern.infra.storage.session_repository import persistence_errors
from tavern.models.character_db import Character

logger = logging.getLogger(__name__)

MAX_IMPORT_BATCH = 100


def _require_object(payload: Any, label: str = "Character data") -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise PayloadValidationError(f"{label} must be a JSON object")
    return payload


class CharacterService:
    """Character CRUD scoped to the authenticated user."""

    def __init__(self, repository: CharacterRepository):
        self.repository = repository

    async def list_characters(self, user_id: str) -> List[Character]:
        with persistence_errors("list characters"):
            return await self.repository.list_for_user(user_id)

    async def get_character(self, user_id: str, character_id: str) -> Character:
        with persistence_errors("load character"):
            character = await self.repository.get(user_id, character_id)
        if not character:
            raise CharacterNotFoundError(character_id)
        return character

    async def create_character(self, user_id: str, payload: Dict[str, Any]) -> Character:
        payload = _require_object(payload)
        with persistence_errors("save character"):
            created = await self.repository.create_many(user_id, [payload])
        return created[0]

    async def import_characters(self, user_id: str, payloads: List[Any]) -> List[Character]:
        """Save a batch of imported sheets; one bad entry rejects the batch."""
        if not isinstance(payloads, list) or not payloads:
            raise PayloadValidationError("characters must be a non-empty list")
        if len(payloads) > MAX_IMPORT_BATCH:
            raise PayloadValidationError(f"At most {MAX_IMPORT_BATCH} characters can be imported at once")
        checked = [
            _require_object(payload, f"Character #{index + 1}")
            for index, payload in enumerate(payloads)
        ]
        with persistence_errors("import characters"):
            return await self.repository.create_many(user_id, checked)

    async def replace_character(self, user_id: str, character_id: str, payload: Dict[str, Any]) -> Character:
        payload = _require_object(payload)
        with persistence_errors("update character"):
            character = await self.repository.replace(user_id, character_id, payload)
        if not character:
            raise CharacterNotFoundError(character_id)
        return character

    async def delete_character(self, user_id: str, character_id: str) -> None:
        with persistence_errors("delete character"):
            deleted = await self.repository.delete(user_id, character_id)
        if not deleted:
            raise CharacterNotFoundError(character_id)
        logger.info("Deleted character %s of user %s", character_id, user_id)
