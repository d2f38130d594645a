"""Schema for one row of the session listing."""

from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from tavern.models.session_summary import SessionSummary


class SessionSummaryResponse(BaseModel):
    id: str
    name: str
    participant_count: int
    max_participants: int
    status: str
    created_at: Optional[str] = None

    @staticmethod
    def from_model(summary: "SessionSummary") -> "SessionSummaryResponse":
        return SessionSummaryResponse(**summary.to_dict())
