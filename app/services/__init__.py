"""Service layer."""

from app.services import auth as auth_service
from app.services import bookmark as bookmark_service
from app.services import identity as identity_service
from app.services import summarizer as summarizer_service
from app.services import user as user_service

__all__ = [
    "auth_service",
    "bookmark_service",
    "identity_service",
    "summarizer_service",
    "user_service",
]
