"""
FastAPI dependencies for bearer-token authentication.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.src.models import User
from auth.src.user_service import UserService
from tavern.errors import UnauthorizedError

# auto_error=False so a missing header maps to our 401 rather than FastAPI's 403
security = HTTPBearer(auto_error=False)


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Resolve the bearer token to a user; raises 401 when absent or invalid."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    return await user_service.resolve_token(credentials.credentials)


CurrentUser = Annotated[User, Depends(get_current_user)]
