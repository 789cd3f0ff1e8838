"""Request dependencies: bearer authentication and role gates."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from store_ratings.models import User, UserRole
from store_ratings.services.errors import AuthenticationError, PermissionDeniedError
from store_ratings.services.security import TokenClaims, decode_access_token
from store_ratings.stores import redis as redis_store
from store_ratings.stores.postgres import get_session

bearer_scheme = HTTPBearer(auto_error=False)


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenClaims:
    """Decode the Authorization: Bearer token and reject revoked ones."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")

    claims = decode_access_token(credentials.credentials)
    if redis_store.redis_enabled() and await redis_store.is_token_revoked(claims.jti):
        raise AuthenticationError("Token has been revoked")
    return claims


async def get_current_user(claims: TokenClaims = Depends(get_token_claims)) -> User:
    """Load the user behind the token; role changes apply immediately."""
    async with get_session() as session:
        user = await session.get(User, claims.user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    return user


def require_roles(*roles: UserRole):
    """Build a dependency that admits only users with one of the given roles."""
    allowed = frozenset(roles)

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise PermissionDeniedError(
                "Insufficient permissions",
                {"requiredRoles": sorted(role.value for role in allowed)},
            )
        return user

    return dependency


require_admin = require_roles(UserRole.ADMIN)
require_store_owner = require_roles(UserRole.STORE_OWNER, UserRole.ADMIN)
