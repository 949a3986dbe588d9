"""Sign-in resolution: decides whether an OAuth callback may start a session."""

from dataclasses import dataclass
from urllib.parse import urlencode

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import session_scope
from app.core.errors import AccountNotLinkedError, ConflictError, TransientStoreError
from app.core.observability import record_sign_in
from app.models.user import User
from app.schemas.user import OAuthProfile
from app.services import user as user_service

logger = structlog.get_logger()

AUTH_ERROR_PATH = "/auth/error"
DUPLICATE_EMAIL = "duplicate_email"
ACCOUNT_NOT_LINKED = "OAuthAccountNotLinked"
# Generic failure code, reported when the store could not be consulted
SIGN_IN_FAILED = "AccessDenied"


def auth_error_url(error: str, provider: str | None = None) -> str:
    """Build the auth error page URL for an error code."""
    params = {"error": error}
    if provider is not None:
        params["provider"] = provider
    return f"{AUTH_ERROR_PATH}?{urlencode(params)}"


@dataclass(frozen=True)
class SignInDecision:
    """Outcome of the sign-in check.

    A rejected decision carries the error code and the URL to redirect to.
    """

    accepted: bool
    error: str | None = None
    redirect_url: str | None = None

    @classmethod
    def accept(cls) -> "SignInDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, error: str, provider: str | None = None) -> "SignInDecision":
        return cls(accepted=False, error=error, redirect_url=auth_error_url(error, provider))


@dataclass(frozen=True)
class SignInResult:
    decision: SignInDecision
    user: User | None = None
    created: bool = False


async def check_provider_binding(
    session: AsyncSession,
    email: str,
    provider: str,
) -> None:
    """Ensure an email is either new or already bound to ``provider``.

    Raises ConflictError if the email belongs to a user who signed up
    through a different provider.
    """
    user = await user_service.get_user_by_email(session, email)
    if user is None:
        return

    account = await user_service.get_account_for_user(session, user.id, provider)
    if account is None:
        raise ConflictError(email=email, provider=provider)


async def resolve_sign_in(
    session: AsyncSession,
    email: str,
    provider: str,
) -> SignInDecision:
    """Accept or reject a sign-in attempt.

    New emails and returning (email, provider) pairs are accepted. An email
    already registered through another provider is rejected with
    ``duplicate_email``. Store errors reject with the generic failure code.
    """
    try:
        await check_provider_binding(session, email, provider)
    except ConflictError:
        logger.info("Sign-in rejected - email bound to another provider", provider=provider)
        return SignInDecision.reject(DUPLICATE_EMAIL, provider)
    except (SQLAlchemyError, TransientStoreError) as e:
        logger.error("Sign-in lookup failed", provider=provider, error=str(e))
        return SignInDecision.reject(SIGN_IN_FAILED)

    return SignInDecision.accept()


async def complete_sign_in(profile: OAuthProfile) -> SignInResult:
    """Resolve a sign-in and, when accepted, persist the user and account.

    Never raises for store failures: they reject the sign-in instead.
    """
    try:
        async with session_scope() as session:
            decision = await resolve_sign_in(session, profile.email, profile.provider)
            if not decision.accepted:
                record_sign_in(profile.provider, decision.error or SIGN_IN_FAILED)
                return SignInResult(decision=decision)

            user, created = await user_service.link_oauth_identity(session, profile)
    except AccountNotLinkedError:
        logger.info("Sign-in rejected - email bound to another account", provider=profile.provider)
        record_sign_in(profile.provider, ACCOUNT_NOT_LINKED)
        return SignInResult(decision=SignInDecision.reject(ACCOUNT_NOT_LINKED))
    except (SQLAlchemyError, TransientStoreError, ValueError) as e:
        logger.error("Sign-in failed", provider=profile.provider, error=str(e))
        record_sign_in(profile.provider, "failed")
        return SignInResult(decision=SignInDecision.reject(SIGN_IN_FAILED))

    record_sign_in(profile.provider, "accepted")
    return SignInResult(decision=SignInDecision.accept(), user=user, created=created)
