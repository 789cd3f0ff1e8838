"""User management service (admin) and self-service profile updates."""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from store_ratings.models import User, UserRole
from store_ratings.schemas import (
    ProfileUpdate,
    UserCreate,
    UserListResponse,
    UserOut,
    UserPagination,
    UserUpdate,
)
from store_ratings.services.errors import ConflictError, NotFoundError, ValidationFailedError
from store_ratings.services.listing import escape_like
from store_ratings.services.pagination import PageRequest, build_pagination
from store_ratings.services.security import hash_password

logger = logging.getLogger("uvicorn.error")

USER_SORT_COLUMNS = {
    "id": User.id,
    "name": User.name,
    "email": User.email,
    "address": User.address,
    "role": User.role,
    "createdAt": User.created_at,
    "updatedAt": User.updated_at,
}
_USER_SORT_LOOKUP = {name.lower(): name for name in USER_SORT_COLUMNS} | {
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def ensure_email_available(session: AsyncSession, email: str) -> None:
    """Raise ConflictError if a user already registered with this email."""
    if await get_user_by_email(session, email) is not None:
        raise ConflictError("User with this email already exists", {"email": email})


async def _get_user_or_404(session: AsyncSession, user_id: int, *options) -> User:
    result = await session.execute(
        select(User).where(User.id == user_id).options(*options).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found", {"userId": user_id})
    return user


async def get_user(session: AsyncSession, user_id: int) -> UserOut:
    return UserOut.model_validate(await _get_user_or_404(session, user_id))


async def add_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    address: str | None,
    role: UserRole,
) -> User:
    """Insert a user with a hashed password. Email uniqueness is checked first."""
    await ensure_email_available(session, email)
    user = User(
        name=name.strip(),
        email=email,
        password=hash_password(password),
        address=(address or "").strip(),
        role=role,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    logger.info("[users] created user_id=%s email=%s role=%s", user.id, user.email, user.role.value)
    return user


async def create_user(session: AsyncSession, payload: UserCreate) -> UserOut:
    user = await add_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        address=payload.address,
        role=payload.role,
    )
    return UserOut.model_validate(user)


async def update_user(session: AsyncSession, user_id: int, payload: UserUpdate) -> UserOut:
    """Partial update by an admin. Omitted fields are unchanged."""
    user = await _get_user_or_404(session, user_id)

    if payload.email is not None and payload.email != user.email:
        await ensure_email_available(session, payload.email)
        user.email = payload.email
    if payload.name is not None:
        user.name = payload.name.strip()
    if payload.address is not None:
        user.address = payload.address.strip()
    if payload.role is not None and payload.role != user.role:
        if user.role == UserRole.ADMIN:
            await _ensure_not_last_admin(session, "demote")
        user.role = payload.role

    await session.flush()
    await session.refresh(user)
    logger.info("[users] updated user_id=%s fields=%s", user.id, sorted(payload.model_fields_set))
    return UserOut.model_validate(user)


async def update_profile(session: AsyncSession, user_id: int, payload: ProfileUpdate) -> UserOut:
    """Self-service update of name and address."""
    user = await _get_user_or_404(session, user_id)
    if payload.name is not None:
        user.name = payload.name.strip()
    if payload.address is not None:
        user.address = payload.address.strip()
    await session.flush()
    await session.refresh(user)
    return UserOut.model_validate(user)


async def _ensure_not_last_admin(session: AsyncSession, action: str) -> None:
    result = await session.execute(select(func.count(User.id)).where(User.role == UserRole.ADMIN))
    if (result.scalar() or 0) <= 1:
        raise ValidationFailedError(f"Cannot {action} the last admin user")


async def delete_user(session: AsyncSession, user_id: int) -> None:
    """Delete a user.

    Their ratings are deleted and any stores they owned keep existing with
    owner_id set to null.

    Raises:
        NotFoundError: If the user does not exist.
        ValidationFailedError: If this is the last admin.
    """
    user = await _get_user_or_404(
        session,
        user_id,
        selectinload(User.ratings),
        selectinload(User.owned_stores),
    )
    if user.role == UserRole.ADMIN:
        await _ensure_not_last_admin(session, "delete")

    orphaned_stores = [store.id for store in user.owned_stores]
    await session.delete(user)
    await session.flush()
    logger.info("[users] deleted user_id=%s orphaned_stores=%s", user_id, orphaned_stores)


async def list_users(
    session: AsyncSession,
    page: PageRequest,
    *,
    search: str | None = None,
    role: UserRole | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
) -> UserListResponse:
    """Paginated user list with search over name/email/address and a role filter."""
    where = []
    term = (search or "").strip()
    if term:
        pattern = f"%{escape_like(term)}%"
        where.append(
            or_(
                User.name.ilike(pattern, escape="\\"),
                User.email.ilike(pattern, escape="\\"),
                User.address.ilike(pattern, escape="\\"),
            )
        )
    if role is not None:
        where.append(User.role == role)

    field_name = _USER_SORT_LOOKUP.get((sort_by or "").strip().lower(), "createdAt")
    column = USER_SORT_COLUMNS[field_name]
    ascending = (sort_order or "").strip().upper() == "ASC"
    order = column.asc() if ascending else column.desc()
    tie_break = User.id.asc() if ascending else User.id.desc()

    count_result = await session.execute(select(func.count(User.id)).where(*where))
    total = count_result.scalar() or 0

    result = await session.execute(
        select(User).where(*where).order_by(order, tie_break).limit(page.limit).offset(page.offset)
    )
    return UserListResponse(
        users=[UserOut.model_validate(u) for u in result.scalars().all()],
        pagination=UserPagination.from_pagination(build_pagination(page, total)),
    )
