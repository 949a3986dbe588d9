"""Session materialization.

Issuance copies the user's id into the token claims; on every request the
verified claims are turned back into a ``SessionPayload`` whose user id is
resolved exactly once from the first claim that carries one.
"""

from datetime import datetime, timezone
from typing import Any

import structlog

from app.models.user import User
from app.schemas.session import SessionPayload, SessionUser

logger = structlog.get_logger()

SUBJECT_CLAIM = "sub"
USER_ID_CLAIM = "userId"
STORE_ID_CLAIM = "_id"

# Order in which claims are tried when resolving the session user id
SESSION_ID_CLAIMS = (SUBJECT_CLAIM, USER_ID_CLAIM, STORE_ID_CLAIM)


def apply_token_claims(claims: dict[str, Any], user: User | None = None) -> dict[str, Any]:
    """Populate token claims at issuance.

    When a user is present (first touch after sign-in) its id becomes the
    subject and is also copied into the custom ``userId`` claim. Without a
    user the claims are returned unchanged.
    """
    claims = dict(claims)
    if user is None:
        return claims

    user_id = str(user.id)
    claims[SUBJECT_CLAIM] = user_id
    claims[USER_ID_CLAIM] = user_id
    claims["email"] = user.email
    claims["name"] = user.name
    claims["picture"] = user.image
    return claims


def _claim_value(claims: dict[str, Any], name: str) -> str | None:
    value = claims.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def resolve_session_user_id(claims: dict[str, Any]) -> str | None:
    """Return the first non-empty identifier among SESSION_ID_CLAIMS."""
    for name in SESSION_ID_CLAIMS:
        value = _claim_value(claims, name)
        if value:
            return value
    return None


def _expiry(claims: dict[str, Any]) -> datetime:
    exp = claims.get("exp")
    if exp is None:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(int(exp), tz=timezone.utc)


def build_session(claims: dict[str, Any]) -> SessionPayload:
    """Build the request-scoped session from verified token claims.

    Claim extraction never raises: on any error the session is returned
    without a user id.
    """
    try:
        user_id = resolve_session_user_id(claims)
    except Exception as e:
        logger.warning("Failed to resolve session user id", error=str(e))
        user_id = None

    try:
        expires = _expiry(claims)
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning("Invalid session expiry claim", error=str(e))
        expires = datetime.now(timezone.utc)

    user = SessionUser(
        id=user_id,
        name=_claim_value(claims, "name"),
        email=_claim_value(claims, "email"),
        image=_claim_value(claims, "picture"),
    )
    return SessionPayload(user=user, expires=expires, claims=claims)
