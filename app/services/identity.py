"""Caller identity resolution for user-scoped resources.

The caller's identity can arrive in several shapes depending on how the
session was populated. Each ``IdentitySource`` knows how to read one of
them; ``resolve_identity`` walks an ordered list of sources and returns the
first non-empty value.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from app.core.errors import ValidationError
from app.core.session import STORE_ID_CLAIM, SUBJECT_CLAIM
from app.schemas.session import SessionPayload

USER_ID_HEADER = "X-User-ID"
USER_ID_BODY_FIELD = "userId"


@dataclass(frozen=True)
class IdentityContext:
    """Everything an identity source may inspect for one request."""

    session: SessionPayload | None
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Mapping[str, Any] | None = None


def _non_empty(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class IdentitySource(ABC):
    """One place a caller identifier may be found."""

    name: str

    @abstractmethod
    def extract(self, context: IdentityContext) -> str | None:
        """Return the identifier, or None if this source has none."""


class SessionUserIdSource(IdentitySource):
    name = "session_user_id"

    def extract(self, context: IdentityContext) -> str | None:
        if context.session is None:
            return None
        return _non_empty(context.session.user.id)


class SessionClaimSource(IdentitySource):
    """Reads a raw claim from the verified session token."""

    def __init__(self, claim: str, name: str) -> None:
        self.claim = claim
        self.name = name

    def extract(self, context: IdentityContext) -> str | None:
        if context.session is None:
            return None
        return _non_empty(context.session.claims.get(self.claim))


class HeaderSource(IdentitySource):
    def __init__(self, header: str = USER_ID_HEADER) -> None:
        self.header = header
        self.name = f"header:{header}"

    def extract(self, context: IdentityContext) -> str | None:
        value = context.headers.get(self.header)
        if value is None:
            value = context.headers.get(self.header.lower())
        return _non_empty(value)


class BodyFieldSource(IdentitySource):
    def __init__(self, field_name: str = USER_ID_BODY_FIELD) -> None:
        self.field_name = field_name
        self.name = f"body:{field_name}"

    def extract(self, context: IdentityContext) -> str | None:
        if not context.body:
            return None
        return _non_empty(context.body.get(self.field_name))


class SessionEmailSource(IdentitySource):
    name = "session_email"

    def extract(self, context: IdentityContext) -> str | None:
        if context.session is None:
            return None
        return _non_empty(context.session.user.email)


DEFAULT_IDENTITY_SOURCES: tuple[IdentitySource, ...] = (
    SessionUserIdSource(),
    SessionClaimSource(SUBJECT_CLAIM, name="session_subject"),
    SessionClaimSource(STORE_ID_CLAIM, name="session_store_id"),
    HeaderSource(USER_ID_HEADER),
    BodyFieldSource(USER_ID_BODY_FIELD),
    SessionEmailSource(),
)


def resolve_identity(
    context: IdentityContext,
    sources: Sequence[IdentitySource] = DEFAULT_IDENTITY_SOURCES,
) -> str | None:
    """Return the first identifier any source yields, in order."""
    for source in sources:
        value = source.extract(context)
        if value:
            return value
    return None


def require_identity(
    context: IdentityContext,
    sources: Sequence[IdentitySource] = DEFAULT_IDENTITY_SOURCES,
) -> str:
    """Like resolve_identity, but raises ValidationError when nothing matched."""
    user_id = resolve_identity(context, sources)
    if user_id is None:
        raise ValidationError("User ID not found")
    return user_id
