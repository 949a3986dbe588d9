"""Bookmark Pydantic schemas.

Request and response bodies use camelCase keys to match the web client.
Request fields are all optional so that missing article data is reported
as a 400 by the bookmark service instead of a schema error.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.bookmark import Bookmark


class ArticleSource(BaseModel):
    """Publisher of an article."""

    name: str | None = None


class ArticleIn(BaseModel):
    """Article as delivered by the news feed."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str | None = None
    title: str | None = None
    description: str | None = None
    url_to_image: str | None = Field(default=None, alias="urlToImage")
    published_at: str | None = Field(default=None, alias="publishedAt")
    source: ArticleSource | None = None


class BookmarkCreate(BaseModel):
    """Schema for creating a bookmark."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    article: ArticleIn | None = None
    category: str | None = None
    user_id: str | None = Field(default=None, alias="userId")


class BookmarkResponse(BaseModel):
    """Schema for bookmark response."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(serialization_alias="_id")
    user_id: str = Field(serialization_alias="userId")
    article_id: str = Field(serialization_alias="articleId")
    title: str
    description: str
    url: str
    url_to_image: str = Field(serialization_alias="urlToImage")
    published_at: str = Field(serialization_alias="publishedAt")
    source: ArticleSource
    category: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @classmethod
    def from_model(cls, bookmark: Bookmark) -> "BookmarkResponse":
        return cls(
            id=bookmark.id,
            user_id=bookmark.user_id,
            article_id=bookmark.article_id,
            title=bookmark.title,
            description=bookmark.description,
            url=bookmark.url,
            url_to_image=bookmark.url_to_image,
            published_at=bookmark.published_at,
            source=ArticleSource(name=bookmark.source_name),
            category=bookmark.category,
            created_at=bookmark.created_at,
            updated_at=bookmark.updated_at,
        )


class BookmarkMutationResponse(BaseModel):
    """Schema for create responses: a message plus the stored bookmark."""

    message: str
    bookmark: BookmarkResponse


class MessageResponse(BaseModel):
    message: str
