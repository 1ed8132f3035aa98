"""Signed bearer tokens for admin console staff."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from smileforward.settings import settings

INSECURE_DEV_SECRET = "dev-secret-key-change-in-production"


def _signing_key() -> str:
    if settings.environment == "production" and settings.jwt_secret_key == INSECURE_DEV_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set in production")
    return settings.jwt_secret_key


def issue_staff_token(user_id: int, email: str, ttl: timedelta | None = None) -> str:
    """Sign a token for a staff user. ``sub`` carries the user id as a string."""
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "email": email,
        "iat": issued_at,
        "exp": issued_at + (ttl or timedelta(minutes=settings.jwt_access_token_expire_minutes)),
    }
    return jwt.encode(claims, _signing_key(), algorithm=settings.jwt_algorithm)


def staff_id_from_token(token: str) -> int | None:
    """Return the staff user id of a valid, unexpired token."""
    try:
        claims = jwt.decode(token, _signing_key(), algorithms=[settings.jwt_algorithm])
        return int(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None
