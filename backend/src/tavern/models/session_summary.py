"""SessionSummary data model - one row of the session listing."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class SessionSummary:
    """Listing view of a session."""
    id: str
    name: str
    participant_count: int
    max_participants: int
    status: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "participant_count": self.participant_count,
            "max_participants": self.max_participants,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
