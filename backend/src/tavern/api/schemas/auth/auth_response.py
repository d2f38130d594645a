"""Schema for register/login responses."""

from pydantic import BaseModel

from tavern.api.schemas.auth.user_summary import UserSummary


class AuthResponse(BaseModel):
    """Bearer token plus the account it was issued for."""
    token: str
    user: UserSummary
