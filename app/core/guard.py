"""Route guarding for protected page paths.

Two layers check the same list of protected prefixes. The edge layer
(``RouteGuardMiddleware`` in ``app.core.middleware``) runs before any route
and redirects requests without a valid session token to the sign-in page.
The render layer (``render_guarded``) runs inside page handlers against the
materialized session and decides which view to return.
"""

from enum import Enum
from typing import Any, Callable
from urllib.parse import urlencode

from app.core.config import get_settings
from app.schemas.session import SessionPayload

settings = get_settings()

SIGNIN_PATH = "/auth/signin"

# Paths that are never guarded, whatever the protected list says
EXCLUDED_PREFIXES = (
    "/api/v1/auth",
    "/auth",
    "/metrics",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/static",
    "/favicon.ico",
)


class SessionStatus(str, Enum):
    """Session status as seen by the render layer."""

    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


def _matches(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/") or "/"
    if prefix == "/":
        return True
    return path == prefix or path.startswith(f"{prefix}/")


def is_excluded_path(path: str) -> bool:
    """Check whether a path is exempt from guarding."""
    return any(_matches(path, prefix) for prefix in EXCLUDED_PREFIXES)


def is_protected_path(path: str, protected_routes: list[str] | None = None) -> bool:
    """Check whether a path equals a protected prefix or lies beneath one."""
    if is_excluded_path(path):
        return False
    routes = settings.protected_routes if protected_routes is None else protected_routes
    return any(_matches(path, route) for route in routes)


def signin_url(callback_path: str) -> str:
    """Sign-in page URL that returns the user to ``callback_path`` afterwards."""
    return f"{SIGNIN_PATH}?{urlencode({'callbackUrl': callback_path})}"


class RouteGuardState:
    """Render-layer session status.

    Starts in ``loading`` and resolves exactly once to ``authenticated`` or
    ``unauthenticated``. Both resolved states are terminal: later calls to
    ``resolve`` leave the status unchanged.
    """

    def __init__(self) -> None:
        self._status = SessionStatus.LOADING

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_resolved(self) -> bool:
        return self._status is not SessionStatus.LOADING

    def resolve(self, session: SessionPayload | None) -> SessionStatus:
        if self.is_resolved:
            return self._status
        if session is None:
            self._status = SessionStatus.UNAUTHENTICATED
        else:
            self._status = SessionStatus.AUTHENTICATED
        return self._status


def _section_name(path: str) -> str:
    segment = path.strip("/").split("/", 1)[0]
    return segment or "requested"


def loading_view() -> dict[str, Any]:
    return {"view": "loading", "message": "Checking authentication..."}


def auth_required_view(path: str) -> dict[str, Any]:
    """Panel shown on a protected page when the session is missing."""
    return {
        "view": "auth_required",
        "title": "Authentication Required",
        "message": f"You need to be signed in to access the {_section_name(path)} section.",
        "actions": [
            {"label": "Sign In", "href": signin_url(path)},
            {"label": "Go Home", "href": "/"},
        ],
    }


def render_guarded(
    path: str,
    state: RouteGuardState,
    content: Callable[[], dict[str, Any]],
    protected_routes: list[str] | None = None,
) -> dict[str, Any]:
    """Pick the view for a page according to the guard state.

    Non-protected paths always render their content. Protected paths render
    a loading placeholder until the state resolves, then either the
    authentication-required panel or the content.
    """
    if not is_protected_path(path, protected_routes):
        return {"view": "content", **content()}

    if state.status is SessionStatus.LOADING:
        return loading_view()
    if state.status is SessionStatus.UNAUTHENTICATED:
        return auth_required_view(path)
    return {"view": "content", **content()}
