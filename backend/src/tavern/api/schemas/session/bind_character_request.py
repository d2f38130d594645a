"""Schema for binding a character to a session player."""

from typing import Any, Dict

from pydantic import BaseModel


class BindCharacterRequest(BaseModel):
    character_data: Dict[str, Any]
