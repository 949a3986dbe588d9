"""Security utilities for signed session tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from app.core.config import get_settings

settings = get_settings()

# JWT Configuration
ALGORITHM = "HS256"
SESSION_MAX_AGE = timedelta(days=settings.session_max_age_days)


def create_session_token(
    claims: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a session token.

    The expiry is fixed at issuance; reading a session never extends it.

    Args:
        claims: Claims to embed (``sub`` should hold the user id)
        expires_delta: Optional custom lifetime, defaults to SESSION_MAX_AGE

    Returns:
        Encoded JWT token string
    """
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or SESSION_MAX_AGE)

    to_encode = dict(claims)
    to_encode.update({"iat": issued_at, "exp": expire})

    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_session_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a session token.

    Returns:
        The claims if the signature is valid and the token has not expired,
        None otherwise
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


def create_cookie_token(claims: dict[str, Any]) -> tuple[str, int]:
    """Create a token suitable for httpOnly cookie storage.

    Returns:
        Tuple of (token, max_age_seconds)
    """
    token = create_session_token(claims)
    max_age = int(SESSION_MAX_AGE.total_seconds())
    return token, max_age
