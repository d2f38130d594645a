"""Schema for character response."""

from typing import Any, Dict, Optional, TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from tavern.models.character_db import Character


class CharacterResponse(BaseModel):
    id: str
    user_id: str
    name: str
    character_data: Dict[str, Any]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @staticmethod
    def from_model(character: "Character") -> "CharacterResponse":
        return CharacterResponse(**character.to_dict())
