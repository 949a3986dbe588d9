"""OAuth client configuration for GitHub and Google."""

from typing import Any

import httpx
from authlib.integrations.starlette_client import OAuth, StarletteOAuth2App

from app.core.config import get_settings
from app.schemas.user import OAuthProfile, OAuthTokens

settings = get_settings()

# Display names, in the order providers are offered on the sign-in page
SUPPORTED_PROVIDERS = {
    "github": "GitHub",
    "google": "Google",
}

oauth = OAuth()

oauth.register(
    name="github",
    client_id=settings.github_client_id,
    client_secret=settings.github_client_secret,
    access_token_url="https://github.com/login/oauth/access_token",
    authorize_url="https://github.com/login/oauth/authorize",
    api_base_url="https://api.github.com/",
    client_kwargs={"scope": "user:email read:user"},
)

oauth.register(
    name="google",
    client_id=settings.google_client_id,
    client_secret=settings.google_client_secret,
    server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
    client_kwargs={"scope": "openid email profile"},
)


def is_provider_configured(provider: str) -> bool:
    """Check whether client credentials are set for a provider."""
    client_id = {
        "github": settings.github_client_id,
        "google": settings.google_client_id,
    }.get(provider)
    return bool(client_id)


def get_oauth_client(provider: str) -> StarletteOAuth2App:
    """Get the registered OAuth client for the specified provider."""
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unknown OAuth provider: {provider}")
    return oauth.create_client(provider)


class OAuthProfileError(Exception):
    """The provider did not return a usable identity."""


def _tokens_from(token: dict[str, Any]) -> OAuthTokens:
    return OAuthTokens(
        access_token=token.get("access_token"),
        refresh_token=token.get("refresh_token"),
        expires_at=token.get("expires_at"),
        token_type=token.get("token_type"),
        scope=token.get("scope"),
        id_token=token.get("id_token"),
        session_state=token.get("session_state"),
    )


async def _fetch_github_profile(token: dict[str, Any]) -> OAuthProfile:
    async with httpx.AsyncClient() as client:
        headers = {"Authorization": f"Bearer {token['access_token']}"}

        user_resp = await client.get("https://api.github.com/user", headers=headers)
        if user_resp.status_code != 200:
            raise OAuthProfileError("Failed to fetch GitHub user info")
        github_user = user_resp.json()

        # The profile email is empty when the user keeps it private
        emails_resp = await client.get("https://api.github.com/user/emails", headers=headers)
        emails = emails_resp.json() if emails_resp.status_code == 200 else []

    email = github_user.get("email")
    if not email and emails:
        for entry in emails:
            if entry.get("primary") and entry.get("verified"):
                email = entry.get("email")
                break
        if not email:
            email = emails[0].get("email")

    if not email:
        raise OAuthProfileError("Could not get email from GitHub")

    return OAuthProfile(
        provider="github",
        provider_account_id=str(github_user["id"]),
        email=email,
        name=github_user.get("name") or github_user.get("login"),
        image=github_user.get("avatar_url"),
        tokens=_tokens_from(token),
    )


async def _fetch_google_profile(token: dict[str, Any]) -> OAuthProfile:
    user_info = token.get("userinfo")
    if not user_info:
        raise OAuthProfileError("Failed to get user info from Google")

    email = user_info.get("email")
    if not email:
        raise OAuthProfileError("Could not get email from Google")

    return OAuthProfile(
        provider="google",
        provider_account_id=user_info["sub"],
        email=email,
        name=user_info.get("name"),
        image=user_info.get("picture"),
        tokens=_tokens_from(token),
    )


async def fetch_oauth_profile(provider: str, token: dict[str, Any]) -> OAuthProfile:
    """Turn a provider token response into the signed-in identity.

    Raises OAuthProfileError if the provider gives no usable email.
    """
    if provider == "github":
        return await _fetch_github_profile(token)
    if provider == "google":
        return await _fetch_google_profile(token)
    raise ValueError(f"Unknown OAuth provider: {provider}")
