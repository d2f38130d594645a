"""Character schema exports."""

from tavern.api.schemas.character.character_request import CharacterRequest
from tavern.api.schemas.character.import_characters_request import ImportCharactersRequest
from tavern.api.schemas.character.character_response import CharacterResponse
from tavern.api.schemas.character.import_characters_response import ImportCharactersResponse

__all__ = [
    "CharacterRequest",
    "ImportCharactersRequest",
    "CharacterResponse",
    "ImportCharactersResponse",
]
