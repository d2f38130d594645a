"""Email/password authentication endpoints."""

from fastapi import APIRouter, Depends, status

from auth.src.middleware import CurrentUser, get_user_service
from auth.src.user_service import UserService
from tavern.api.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserSummary

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(req: RegisterRequest, user_service: UserService = Depends(get_user_service)):
    user, token = await user_service.register(req.name, req.email, req.password)
    return AuthResponse(token=token, user=UserSummary.from_model(user))


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest, user_service: UserService = Depends(get_user_service)):
    user, token = await user_service.login(req.email, req.password)
    return AuthResponse(token=token, user=UserSummary.from_model(user))


@router.get("/me", response_model=UserSummary)
async def me(current_user: CurrentUser):
    return UserSummary.from_model(current_user)
