"""Schema for create session request."""

from typing import Optional

from pydantic import BaseModel, Field

from tavern.api.schemas.session.session_settings_schema import SessionSettingsSchema


class CreateSessionRequest(BaseModel):
    """Request to create a session; the creator becomes its owner."""
    name: str = Field(min_length=1, max_length=255)
    owner_name: str = Field(min_length=1, max_length=255)
    settings: Optional[SessionSettingsSchema] = None
