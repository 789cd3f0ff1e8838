"""Auth endpoints: register, login, change password, logout, current user."""

from fastapi import APIRouter, Depends, status

from store_ratings.models import User
from store_ratings.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserOut,
)
from store_ratings.services import auth as auth_service
from store_ratings.services.security import TokenClaims
from store_ratings.stores.postgres import get_session
from store_ratings.routes.deps import get_current_user, get_token_claims

router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest) -> TokenResponse:
    """Sign up as a regular user or a store owner."""
    async with get_session() as session:
        return await auth_service.register(session, request)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest) -> TokenResponse:
    async with get_session() as session:
        return await auth_service.login(session, request)


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
) -> MessageResponse:
    async with get_session() as session:
        await auth_service.change_password(session, user.id, request)
    return MessageResponse(message="Password changed successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout(claims: TokenClaims = Depends(get_token_claims)) -> MessageResponse:
    await auth_service.logout(claims)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.model_validate(user)
