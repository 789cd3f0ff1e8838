"""Authentication service: registration, login, password change, logout."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from store_ratings.models import User, UserRole
from store_ratings.schemas import ChangePasswordRequest, LoginRequest, RegisterRequest, TokenResponse, UserOut
from store_ratings.services.errors import AuthenticationError, PermissionDeniedError, ValidationFailedError
from store_ratings.services.security import (
    TokenClaims,
    create_access_token,
    hash_password,
    verify_password,
)
from store_ratings.services.users import add_user, get_user_by_email
from store_ratings.stores import redis as redis_store

logger = logging.getLogger("uvicorn.error")

# Roles a visitor may pick when signing up; admins are created by admins.
SELF_REGISTER_ROLES = frozenset({UserRole.USER, UserRole.STORE_OWNER})


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        token=create_access_token(user.id, user.role.value),
        user=UserOut.model_validate(user),
    )


async def register(session: AsyncSession, payload: RegisterRequest) -> TokenResponse:
    """Create an account and return a token for it.

    Raises:
        PermissionDeniedError: If the requested role is admin.
        ConflictError: If the email is taken.
    """
    if payload.role not in SELF_REGISTER_ROLES:
        raise PermissionDeniedError("Admin accounts cannot be self-registered")

    user = await add_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        address=payload.address,
        role=payload.role,
    )
    logger.info("[auth] registered user_id=%s role=%s", user.id, user.role.value)
    return _token_response(user)


async def login(session: AsyncSession, payload: LoginRequest) -> TokenResponse:
    user = await get_user_by_email(session, payload.email)
    if user is None or not verify_password(payload.password, user.password):
        logger.info("[auth] failed login email=%s", payload.email)
        raise AuthenticationError("Invalid email or password")
    logger.info("[auth] login user_id=%s", user.id)
    return _token_response(user)


async def change_password(session: AsyncSession, user_id: int, payload: ChangePasswordRequest) -> None:
    user = await session.get(User, user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    if not verify_password(payload.current_password, user.password):
        raise ValidationFailedError("Current password is incorrect")
    user.password = hash_password(payload.new_password)
    await session.flush()
    logger.info("[auth] password changed user_id=%s", user_id)


async def logout(claims: TokenClaims) -> None:
    """Revoke the presented token until its natural expiry.

    Without Redis tokens stay valid until they expire; the client discards them.
    """
    if not redis_store.redis_enabled():
        logger.info("[auth] logout user_id=%s (revocation disabled)", claims.user_id)
        return
    await redis_store.revoke_token(claims.jti, claims.seconds_remaining())
    logger.info("[auth] logout user_id=%s jti=%s", claims.user_id, claims.jti)
