"""Tests for sign-in resolution and identity persistence."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.core.database import session_scope
from app.core.errors import ConflictError, TransientStoreError
from app.models import Account, User
from app.schemas.user import OAuthProfile, OAuthTokens
from app.services import auth as auth_service
from app.services import user as user_service

EMAIL = "reader@example.com"


def _profile(provider: str = "github", account_id: str = "1001", **overrides) -> OAuthProfile:
    fields = {
        "provider": provider,
        "provider_account_id": account_id,
        "email": EMAIL,
        "name": "Reader",
        "tokens": OAuthTokens(access_token="access-1", token_type="bearer"),
    }
    fields.update(overrides)
    return OAuthProfile(**fields)


async def _count(model) -> int:
    async with session_scope() as session:
        return await session.scalar(select(func.count()).select_from(model))


class TestResolveSignIn:
    async def test_new_email_is_accepted(self, database):
        async with session_scope() as session:
            decision = await auth_service.resolve_sign_in(session, EMAIL, "github")

        assert decision.accepted
        assert decision.redirect_url is None

    async def test_returning_provider_is_accepted(self, database):
        await auth_service.complete_sign_in(_profile("github"))

        async with session_scope() as session:
            decision = await auth_service.resolve_sign_in(session, EMAIL, "github")

        assert decision.accepted

    async def test_other_provider_is_rejected_as_duplicate(self, database):
        await auth_service.complete_sign_in(_profile("github"))

        async with session_scope() as session:
            decision = await auth_service.resolve_sign_in(session, EMAIL, "google")

        assert not decision.accepted
        assert decision.error == "duplicate_email"
        assert decision.redirect_url == "/auth/error?error=duplicate_email&provider=google"

    async def test_store_error_fails_closed(self, database, monkeypatch):
        async def broken_lookup(session, email):
            raise SQLAlchemyError("connection reset")

        monkeypatch.setattr(user_service, "get_user_by_email", broken_lookup)

        async with session_scope() as session:
            decision = await auth_service.resolve_sign_in(session, EMAIL, "github")

        assert not decision.accepted
        assert decision.error == "AccessDenied"
        assert decision.redirect_url == "/auth/error?error=AccessDenied"

    async def test_check_provider_binding_raises_conflict(self, database):
        await auth_service.complete_sign_in(_profile("github"))

        async with session_scope() as session:
            with pytest.raises(ConflictError) as exc_info:
                await auth_service.check_provider_binding(session, EMAIL, "google")

        assert exc_info.value.provider == "google"
        assert exc_info.value.error == "duplicate_email"


class TestCompleteSignIn:
    async def test_first_sign_in_creates_one_user_and_account(self, database):
        result = await auth_service.complete_sign_in(_profile("github"))

        assert result.decision.accepted
        assert result.created
        assert result.user is not None
        assert result.user.email == EMAIL
        assert await _count(User) == 1
        assert await _count(Account) == 1

    async def test_repeat_sign_in_reuses_user_and_refreshes_tokens(self, database):
        first = await auth_service.complete_sign_in(_profile("github"))
        second = await auth_service.complete_sign_in(
            _profile("github", tokens=OAuthTokens(access_token="access-2"))
        )

        assert second.decision.accepted
        assert not second.created
        assert second.user.id == first.user.id
        assert await _count(User) == 1
        assert await _count(Account) == 1

        async with session_scope() as session:
            account = await user_service.get_account_by_provider_id(session, "github", "1001")
        assert account.access_token == "access-2"
        assert account.token_type == "bearer"

    async def test_duplicate_email_creates_nothing(self, database):
        await auth_service.complete_sign_in(_profile("github"))

        result = await auth_service.complete_sign_in(_profile("google", account_id="g-77"))

        assert not result.decision.accepted
        assert result.user is None
        assert result.decision.redirect_url == "/auth/error?error=duplicate_email&provider=google"
        assert await _count(User) == 1
        assert await _count(Account) == 1

    async def test_second_account_from_same_provider_is_not_linked(self, database):
        await auth_service.complete_sign_in(_profile("github", account_id="1001"))

        result = await auth_service.complete_sign_in(_profile("github", account_id="2002"))

        assert not result.decision.accepted
        assert result.user is None
        assert result.decision.error == "OAuthAccountNotLinked"
        assert result.decision.redirect_url == "/auth/error?error=OAuthAccountNotLinked"
        assert await _count(User) == 1
        assert await _count(Account) == 1

    async def test_unreachable_store_rejects_sign_in(self, database, monkeypatch):
        class Unreachable:
            async def __aenter__(self):
                raise TransientStoreError("Database unavailable")

            async def __aexit__(self, *exc):
                return False

        monkeypatch.setattr(auth_service, "session_scope", lambda: Unreachable())

        result = await auth_service.complete_sign_in(_profile("github"))

        assert not result.decision.accepted
        assert result.decision.error == "AccessDenied"
