"""Account credentials and bearer tokens.

Tokens carry the user id as ``sub`` and the user name as ``name``; requests
are attributed to ``sub`` only.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import JWTError, jwt

from hotfeed.core.errors import InvalidToken
from hotfeed.core.settings import settings

ALGORITHM = "HS256"

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def password_matches(password_hash: str, password: str) -> bool:
    try:
        return _hasher.verify(password_hash, password)
    except (InvalidHashError, VerificationError):
        return False


def issue_token(user_id: UUID, user_name: str, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    claims = {
        "iss": settings.jwt_issuer,
        "sub": str(user_id),
        "name": user_name,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.access_token_minutes)).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=ALGORITHM)


def token_user_id(token: str) -> UUID:
    """Return the user id a token was issued to, or raise ``InvalidToken``."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM], issuer=settings.jwt_issuer)
        return UUID(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError) as exc:
        raise InvalidToken("invalid token") from exc
