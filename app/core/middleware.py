"""Custom middleware for route guarding and security headers."""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from app.core.deps import AUTH_COOKIE_NAME
from app.core.guard import is_protected_path, signin_url
from app.core.observability import record_guard_redirect
from app.core.security import decode_session_token

logger = structlog.get_logger()


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Edge layer of the route guard.

    Requests for protected paths must carry a session cookie whose token
    verifies. Otherwise the client is redirected to the sign-in page with
    ``callbackUrl`` set to the requested path. Everything else passes
    through untouched.
    """

    def __init__(self, app: object, protected_routes: list[str] | None = None) -> None:
        super().__init__(app)
        self.protected_routes = protected_routes

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        if not is_protected_path(path, self.protected_routes):
            return await call_next(request)

        token = request.cookies.get(AUTH_COOKIE_NAME)
        if token is None or decode_session_token(token) is None:
            logger.info("Route guard redirect", path=path, has_token=token is not None)
            record_guard_redirect()
            return RedirectResponse(url=signin_url(path), status_code=307)

        return await call_next(request)


# Headers added to every response
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; form-action 'self'",
    "Permissions-Policy": "camera=(), microphone=(), payment=(), usb=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses.

    Strict-Transport-Security is only sent when ``enable_hsts`` is set.
    """

    def __init__(
        self,
        app: object,
        enable_hsts: bool = False,
        hsts_max_age: int = 31536000,  # 1 year
    ) -> None:
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.hsts_max_age = hsts_max_age

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value

        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={self.hsts_max_age}; includeSubDomains"
            )

        return response
