"""Session Pydantic schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class SessionUser(BaseModel):
    """User portion of a materialized session.

    ``id`` is resolved once when the session is built and is None only when
    no claim carried a usable identifier.
    """

    id: str | None = None
    name: str | None = None
    email: str | None = None
    image: str | None = None


class SessionPayload(BaseModel):
    """Request-scoped session rebuilt from the signed session token."""

    user: SessionUser
    expires: datetime
    claims: dict[str, Any] = Field(default_factory=dict, exclude=True)
