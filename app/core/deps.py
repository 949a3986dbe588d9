"""Dependency injection utilities for FastAPI routes."""

from typing import Annotated

from fastapi import Cookie, Depends

from app.core.errors import AuthorizationError
from app.core.security import decode_session_token
from app.core.session import build_session
from app.schemas.session import SessionPayload

# Cookie name for the signed session token
AUTH_COOKIE_NAME = "newsdesk_session"


async def get_token_from_cookie(
    newsdesk_session: Annotated[str | None, Cookie()] = None,
) -> str | None:
    """Extract the session token from the httpOnly cookie."""
    return newsdesk_session


async def get_session_optional(
    token: Annotated[str | None, Depends(get_token_from_cookie)],
) -> SessionPayload | None:
    """Materialize the session if a valid token is present, otherwise None.

    Use this for routes that work with or without authentication.
    """
    if token is None:
        return None

    claims = decode_session_token(token)
    if claims is None:
        return None

    return build_session(claims)


async def get_current_session(
    session: Annotated[SessionPayload | None, Depends(get_session_optional)],
) -> SessionPayload:
    """Get the current authenticated session.

    Raises AuthorizationError (401) if not authenticated.
    Use this for protected routes.
    """
    if session is None:
        raise AuthorizationError("Unauthorized")
    return session


# Type aliases for dependency injection
CurrentSession = Annotated[SessionPayload, Depends(get_current_session)]
CurrentSessionOptional = Annotated[SessionPayload | None, Depends(get_session_optional)]
