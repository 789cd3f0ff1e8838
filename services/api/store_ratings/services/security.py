"""Password hashing and bearer token handling.

Tokens are HS256 JWTs with claims:
- sub: user id (string)
- role: user role at issue time
- jti: unique token id (used for logout revocation)
- exp: expiry timestamp
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

from store_ratings.services.errors import AuthenticationError
from store_ratings.settings import get_settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


@dataclass(frozen=True)
class TokenClaims:
    """Decoded access token."""

    user_id: int
    role: str
    jti: str
    expires_at: datetime

    def seconds_remaining(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        return int((self.expires_at - now).total_seconds())


def create_access_token(user_id: int, role: str, expires_delta: timedelta | None = None) -> str:
    """Issue a signed access token for a user.

    Args:
        user_id: Subject of the token.
        role: Role claim (informational; authorization re-reads the user).
        expires_delta: Lifetime override; defaults to settings.access_token_expire_minutes.
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {
        "sub": str(user_id),
        "role": role,
        "jti": uuid4().hex,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    """Validate signature and expiry and return the claims.

    Raises:
        AuthenticationError: If the token is malformed, expired or missing claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise AuthenticationError("Invalid or expired token") from e

    sub = payload.get("sub")
    jti = payload.get("jti")
    exp = payload.get("exp")
    if sub is None or jti is None or exp is None:
        raise AuthenticationError("Invalid or expired token")
    try:
        user_id = int(sub)
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid or expired token") from e

    return TokenClaims(
        user_id=user_id,
        role=str(payload.get("role", "")),
        jti=str(jti),
        expires_at=datetime.fromtimestamp(int(exp), tz=timezone.utc),
    )
