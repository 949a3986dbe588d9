"""Application error taxonomy.

Every error carries the HTTP status it maps to. Route handlers raise these
and the handler registered in ``app.main`` renders them as
``{"message": ...}`` JSON bodies.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, error: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error

    def to_body(self) -> dict[str, str]:
        body = {"message": self.message}
        if self.error:
            body["error"] = self.error
        return body


class AuthorizationError(AppError):
    """No session is present for a route that needs one."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ValidationError(AppError):
    """Malformed input, or an identity that no source could resolve."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    """The targeted record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class TransientStoreError(AppError):
    """The store could not be reached or rejected the operation.

    Safe for the caller to retry; nothing is retried internally.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ConflictError(AppError):
    """An email is already bound to a different OAuth provider.

    Never rendered as an HTTP status: the sign-in callback turns it into a
    redirect to the auth error page.
    """

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, email: str, provider: str) -> None:
        super().__init__(
            f"Email {email} is already registered with a different provider",
            error="duplicate_email",
        )
        self.email = email
        self.provider = provider


class AccountNotLinkedError(AppError):
    """The email's user is already bound to another account of the same provider.

    Like ConflictError, the sign-in callback turns it into a redirect.
    """

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"Email is already linked to another {provider} account",
            error="OAuthAccountNotLinked",
        )
        self.provider = provider


def describe_store_error(exc: BaseException) -> str:
    """Driver-level reason for a store failure, safe to return to callers.

    SQLAlchemy's own message embeds the SQL statement and bound parameters,
    so only the wrapped DBAPI error is used, or the exception type.
    """
    orig = getattr(exc, "orig", None)
    if orig is not None:
        return str(orig)
    return type(exc).__name__


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError as a JSON response."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())
