"""Page endpoints.

Each page returns a JSON view description for the web client. Protected
pages re-check the session through the render layer of the route guard,
independently of the edge middleware.
"""

from typing import Annotated, Any
from urllib.parse import urlencode

from fastapi import APIRouter, Query, Request

from app.api.v1.auth import safe_callback_url
from app.core.deps import CurrentSessionOptional
from app.core.guard import RouteGuardState, render_guarded
from app.core.oauth import SUPPORTED_PROVIDERS, is_provider_configured
from app.services.auth import DUPLICATE_EMAIL

router = APIRouter(tags=["pages"], include_in_schema=False)

NEWS_CATEGORIES = [
    "general",
    "business",
    "technology",
    "entertainment",
    "sports",
    "science",
    "health",
]

AUTH_ERROR_MESSAGES = {
    DUPLICATE_EMAIL: (
        "This email is already registered with a different provider. You attempted "
        "to sign in with {provider}, but this email is already linked to another account."
    ),
    "Callback": (
        "There was an error during the authentication process. This could be due to "
        "denied permissions or a configuration issue."
    ),
    "OAuthSignin": "Error occurred while attempting to sign in with the OAuth provider.",
    "OAuthCallback": "Error occurred during OAuth callback.",
    "OAuthCreateAccount": "Error creating OAuth account.",
    "OAuthAccountNotLinked": (
        "To confirm your identity, sign in with the same account you used originally."
    ),
    "EmailCreateAccount": "Error creating email account.",
    "SessionRequired": "This page requires authentication. Please sign in to access this page.",
}
DEFAULT_AUTH_ERROR_MESSAGE = "An unexpected authentication error occurred. Please try again later."

DUPLICATE_EMAIL_OPTIONS = [
    "Sign in with your original provider",
    "Use a different email address with this provider",
    "Contact support if you believe this is an error",
]

DUPLICATE_EMAIL_TOAST = (
    "This email is already associated with a different account. Please use a "
    "different email or sign in with your original provider."
)


def auth_error_message(error: str | None, provider: str | None) -> str:
    template = AUTH_ERROR_MESSAGES.get(error or "", DEFAULT_AUTH_ERROR_MESSAGE)
    return template.format(provider=provider or "another provider")


@router.get("/auth/signin")
async def signin_page(
    callback_url: Annotated[str | None, Query(alias="callbackUrl")] = None,
) -> dict[str, Any]:
    """Sign-in page: the providers a user can choose from."""
    callback = safe_callback_url(callback_url)
    providers = [
        {
            "id": provider,
            "name": name,
            "configured": is_provider_configured(provider),
            "signinUrl": f"/api/v1/auth/{provider}?{urlencode({'callbackUrl': callback})}",
        }
        for provider, name in SUPPORTED_PROVIDERS.items()
    ]
    return {"view": "signin", "callbackUrl": callback, "providers": providers}


@router.get("/auth/error")
async def auth_error_page(
    error: str | None = None,
    provider: str | None = None,
) -> dict[str, Any]:
    """Auth error page with remediation guidance."""
    page: dict[str, Any] = {
        "view": "auth_error",
        "title": "Authentication Error",
        "error": error,
        "provider": provider,
        "message": auth_error_message(error, provider),
        "actions": [
            {"label": "Return to Sign In", "href": "/auth/signin"},
            {"label": "Back to Home", "href": "/"},
        ],
    }
    if error == DUPLICATE_EMAIL:
        page["options"] = DUPLICATE_EMAIL_OPTIONS
        page["toast"] = {"type": "error", "message": DUPLICATE_EMAIL_TOAST}
    return page


@router.get("/news")
async def news_page(request: Request, session: CurrentSessionOptional) -> dict[str, Any]:
    """News page shell; articles are fetched by the client from the feed."""
    state = RouteGuardState()
    state.resolve(session)

    def content() -> dict[str, Any]:
        return {
            "page": "news",
            "user": session.user.model_dump() if session else None,
            "categories": NEWS_CATEGORIES,
            "activeCategory": "general",
        }

    return render_guarded(request.url.path, state, content)
