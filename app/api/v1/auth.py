"""Authentication endpoints for OAuth sign-in, session lookup and sign-out."""

from typing import Annotated
from urllib.parse import urlencode

import pydantic
import structlog
from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from app.core.config import get_settings
from app.core.deps import AUTH_COOKIE_NAME, CurrentSessionOptional
from app.core.oauth import (
    SUPPORTED_PROVIDERS,
    OAuthProfileError,
    fetch_oauth_profile,
    get_oauth_client,
    is_provider_configured,
)
from app.core.rate_limit import RATE_LIMIT_AUTH, limiter
from app.core.security import create_cookie_token
from app.core.session import apply_token_claims
from app.services import auth_service
from app.services.auth import auth_error_url

settings = get_settings()
logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])

# Key under which the post-sign-in destination is kept in the OAuth state session
CALLBACK_URL_KEY = "callback_url"


def safe_callback_url(url: str | None) -> str:
    """Restrict post-sign-in redirects to same-site relative paths."""
    if not url or not url.startswith("/") or url.startswith("//"):
        return "/"
    return url


def _login_success_url(callback_url: str, provider: str) -> str:
    separator = "&" if "?" in callback_url else "?"
    query = urlencode({"status": "login_success", "provider": provider})
    return f"{callback_url}{separator}{query}"


def _check_provider(provider: str) -> None:
    if provider not in SUPPORTED_PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown provider: {provider}",
        )
    if not is_provider_configured(provider):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{SUPPORTED_PROVIDERS[provider]} OAuth is not configured",
        )


@router.get("/session")
async def get_session(session: CurrentSessionOptional) -> dict:
    """Return the materialized session, or an empty object when signed out."""
    if session is None:
        return {}
    return session.model_dump(mode="json")


@router.post("/signout")
async def sign_out(response: Response) -> dict[str, str]:
    """Sign out by clearing the session cookie."""
    response.delete_cookie(
        key=AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
    )
    return {"message": "Signed out successfully"}


@router.get("/{provider}")
@limiter.limit(RATE_LIMIT_AUTH)
async def oauth_login(
    request: Request,
    provider: str,
    callback_url: Annotated[str | None, Query(alias="callbackUrl")] = None,
) -> Response:
    """Start the OAuth flow with a provider.

    The callback URL is remembered so the user lands back where they
    started once signed in.
    """
    _check_provider(provider)

    request.session[CALLBACK_URL_KEY] = safe_callback_url(callback_url)
    redirect_uri = request.url_for("oauth_callback", provider=provider)
    return await get_oauth_client(provider).authorize_redirect(request, redirect_uri)


@router.get("/{provider}/callback", name="oauth_callback")
@limiter.limit(RATE_LIMIT_AUTH)
async def oauth_callback(request: Request, provider: str) -> Response:
    """Handle the OAuth callback.

    Exchanges the code for a token, fetches the profile, runs the sign-in
    check, persists the identity and sets the session cookie. Rejected
    sign-ins are redirected to the auth error page.
    """
    _check_provider(provider)

    try:
        token = await get_oauth_client(provider).authorize_access_token(request)
    except OAuthError as e:
        logger.error("OAuth token exchange failed", provider=provider, error=str(e))
        return RedirectResponse(
            url=auth_error_url("OAuthCallback"),
            status_code=status.HTTP_302_FOUND,
        )

    try:
        profile = await fetch_oauth_profile(provider, token)
    except (OAuthProfileError, pydantic.ValidationError) as e:
        logger.error("OAuth profile fetch failed", provider=provider, error=str(e))
        return RedirectResponse(
            url=auth_error_url("OAuthCallback"),
            status_code=status.HTTP_302_FOUND,
        )

    result = await auth_service.complete_sign_in(profile)
    if not result.decision.accepted or result.user is None:
        return RedirectResponse(
            url=result.decision.redirect_url or auth_error_url("AccessDenied"),
            status_code=status.HTTP_302_FOUND,
        )

    user = result.user
    logger.info(
        "OAuth sign-in successful",
        provider=provider,
        user_id=str(user.id),
        created=result.created,
    )

    token_value, max_age = create_cookie_token(apply_token_claims({}, user))
    callback_url = safe_callback_url(request.session.pop(CALLBACK_URL_KEY, None))

    response = RedirectResponse(
        url=_login_success_url(callback_url, provider),
        status_code=status.HTTP_302_FOUND,
    )
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token_value,
        max_age=max_age,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )
    return response
