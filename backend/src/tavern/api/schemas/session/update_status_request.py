"""Schema for session status change request."""

from pydantic import BaseModel

from tavern.session.session_models import SessionStatus


class UpdateStatusRequest(BaseModel):
    """Owner-only request to move a session to a new status."""
    status: SessionStatus
