"""Schema for per-session settings."""

from typing import Optional

from pydantic import BaseModel, Field

from tavern.models.session_settings import DiceVisibility


class SessionSettingsSchema(BaseModel):
    """Requested settings; omitted fields fall back to server defaults."""
    max_participants: Optional[int] = Field(default=None, ge=1, le=100)
    allow_spectators: Optional[bool] = None
    dice_visibility: Optional[DiceVisibility] = None

    def to_overrides(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
