"""Auth schema exports."""

from tavern.api.schemas.auth.register_request import RegisterRequest
from tavern.api.schemas.auth.login_request import LoginRequest
from tavern.api.schemas.auth.user_summary import UserSummary
from tavern.api.schemas.auth.auth_response import AuthResponse

__all__ = ["RegisterRequest", "LoginRequest", "UserSummary", "AuthResponse"]
