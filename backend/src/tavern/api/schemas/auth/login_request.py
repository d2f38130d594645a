"""Schema for login request."""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str
