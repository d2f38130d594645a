"""Schema for bulk import response."""

from typing import List

from pydantic import BaseModel

from tavern.api.schemas.character.character_response import CharacterResponse


class ImportCharactersResponse(BaseModel):
    imported: int
    characters: List[CharacterResponse]
