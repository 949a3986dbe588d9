"""Bookmark service for database operations and article id derivation."""

import base64
import binascii

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.models.bookmark import Bookmark
from app.schemas.bookmark import BookmarkCreate

DEFAULT_CATEGORY = "general"


def encode_article_id(url: str) -> str:
    """Derive the article id from its URL (standard base64 of the UTF-8 bytes).

    The encoding is reversible, so distinct URLs never share an id.
    """
    return base64.b64encode(url.encode("utf-8")).decode("ascii")


def decode_article_id(article_id: str) -> str:
    """Recover the URL an article id was derived from.

    Raises ValueError if the id is not valid base64 of a UTF-8 string.
    """
    try:
        return base64.b64decode(article_id.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError) as e:
        raise ValueError(f"Invalid article id: {article_id}") from e


async def list_bookmarks(session: AsyncSession, user_id: str) -> list[Bookmark]:
    """Get all bookmarks for a user, newest first."""
    result = await session.execute(
        select(Bookmark)
        .where(Bookmark.user_id == user_id)
        .order_by(Bookmark.created_at.desc())
    )
    return list(result.scalars().all())


async def get_bookmark(
    session: AsyncSession,
    user_id: str,
    article_id: str,
) -> Bookmark | None:
    """Get a user's bookmark for an article."""
    result = await session.execute(
        select(Bookmark).where(
            Bookmark.user_id == user_id,
            Bookmark.article_id == article_id,
        )
    )
    return result.scalar_one_or_none()


async def create_bookmark(
    session: AsyncSession,
    user_id: str,
    data: BookmarkCreate,
) -> tuple[Bookmark, bool]:
    """Bookmark an article for a user.

    Idempotent per (user, article): if the bookmark already exists, including
    when a concurrent request inserted it first, the stored record is
    returned.

    Returns:
        Tuple of (bookmark, created)
    """
    article = data.article
    if article is None or not article.url:
        raise ValidationError("Invalid article data")
    if not article.title or not article.published_at:
        raise ValidationError("Invalid article data")

    article_id = encode_article_id(article.url)

    existing = await get_bookmark(session, user_id, article_id)
    if existing:
        return existing, False

    bookmark = Bookmark(
        user_id=user_id,
        article_id=article_id,
        title=article.title,
        description=article.description or "",
        url=article.url,
        url_to_image=article.url_to_image or "",
        published_at=article.published_at,
        source_name=(article.source.name if article.source else None) or "",
        category=data.category or DEFAULT_CATEGORY,
    )
    session.add(bookmark)
    try:
        await session.flush()
    except IntegrityError:
        # Lost an insert race on (user_id, article_id)
        await session.rollback()
        existing = await get_bookmark(session, user_id, article_id)
        if existing is None:
            raise
        return existing, False

    await session.refresh(bookmark)
    return bookmark, True


async def delete_bookmark(
    session: AsyncSession,
    user_id: str,
    article_id: str,
) -> None:
    """Delete a user's bookmark.

    Raises NotFoundError if the user has no bookmark for the article.
    """
    bookmark = await get_bookmark(session, user_id, article_id)
    if bookmark is None:
        raise NotFoundError("Bookmark not found")

    await session.delete(bookmark)
    await session.flush()
