"""Schema for the public view of a user."""

from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from auth.src.models import User


class UserSummary(BaseModel):
    id: str
    name: str
    email: str
    provider: str
    picture_url: Optional[str] = None
    created_at: Optional[str] = None

    @staticmethod
    def from_model(user: "User") -> "UserSummary":
        return UserSummary(**user.to_summary())
