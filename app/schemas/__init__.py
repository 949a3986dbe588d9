"""Pydantic schemas."""

from app.schemas.bookmark import (
    ArticleIn,
    ArticleSource,
    BookmarkCreate,
    BookmarkMutationResponse,
    BookmarkResponse,
    MessageResponse,
)
from app.schemas.session import SessionPayload, SessionUser
from app.schemas.summary import SummarizeRequest, SummarizeResponse
from app.schemas.user import OAuthProfile, OAuthTokens, UserBase, UserCreate

__all__ = [
    "ArticleIn",
    "ArticleSource",
    "BookmarkCreate",
    "BookmarkMutationResponse",
    "BookmarkResponse",
    "MessageResponse",
    "SessionPayload",
    "SessionUser",
    "SummarizeRequest",
    "SummarizeResponse",
    "OAuthProfile",
    "OAuthTokens",
    "UserBase",
    "UserCreate",
]
