"""Character library endpoints for the authenticated user."""

from typing import List

from fastapi import APIRouter, Depends, status

from auth.src.middleware import CurrentUser
from tavern.api.dependencies import get_character_service
from tavern.api.schemas.character import (
    CharacterRequest,
    CharacterResponse,
    ImportCharactersRequest,
    ImportCharactersResponse,
)
from tavern.services.character_service import CharacterService

router = APIRouter(prefix="/api/characters", tags=["characters"])


@router.get("", response_model=List[CharacterResponse])
async def list_characters(
    current_user: CurrentUser,
    service: CharacterService = Depends(get_character_service),
):
    characters = await service.list_characters(current_user.user_id)
    return [CharacterResponse.from_model(c) for c in characters]


@router.post("", response_model=CharacterResponse, status_code=status.HTTP_201_CREATED)
async def create_character(
    req: CharacterRequest,
    current_user: CurrentUser,
    service: CharacterService = Depends(get_character_service),
):
    character = await service.create_character(current_user.user_id, req.character_data)
    return CharacterResponse.from_model(character)


@router.post("/import", response_model=ImportCharactersResponse, status_code=status.HTTP_201_CREATED)
async def import_characters(
    req: ImportCharactersRequest,
    current_user: CurrentUser,
    service: CharacterService = Depends(get_character_service),
):
    characters = await service.import_characters(current_user.user_id, req.characters)
    return ImportCharactersResponse(
        imported=len(characters),
        characters=[CharacterResponse.from_model(c) for c in characters],
    )


@router.get("/{character_id}", response_model=CharacterResponse)
async def get_character(
    character_id: str,
    current_user: CurrentUser,
    service: CharacterService = Depends(get_character_service),
):
    return CharacterResponse.from_model(await service.get_character(current_user.user_id, character_id))


@router.put("/{character_id}", response_model=CharacterResponse)
async def replace_character(
    character_id: str,
    req: CharacterRequest,
    current_user: CurrentUser,
    service: CharacterService = Depends(get_character_service),
):
    character = await service.replace_character(current_user.user_id, character_id, req.character_data)
    return CharacterResponse.from_model(character)


@router.delete("/{character_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_character(
    character_id: str,
    current_user: CurrentUser,
    service: CharacterService = Depends(get_character_service),
):
    await service.delete_character(current_user.user_id, character_id)
