"""Schema for create/replace character request."""

from typing import Any, Dict

from pydantic import BaseModel


class CharacterRequest(BaseModel):
    character_data: Dict[str, Any]
