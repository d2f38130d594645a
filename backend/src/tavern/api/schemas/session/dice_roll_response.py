"""Schema for a dice history entry."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DiceRollResponse(BaseModel):
    """A recorded roll with its per-term breakdown."""
    id: int
    session_id: str
    player_id: str
    player_name: str
    roll_type: str
    expression: str
    result: int
    breakdown: List[Dict[str, Any]] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    timestamp: Optional[str] = None
