"""Bookmark CRUD endpoints."""

from collections.abc import Callable, Coroutine
from typing import Annotated, Any

import httpx
import structlog
from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_async_session
from app.core.deps import CurrentSession
from app.core.errors import (
    NotFoundError,
    TransientStoreError,
    ValidationError,
    describe_store_error,
)
from app.core.observability import record_bookmark_operation, record_summary_request
from app.core.rate_limit import (
    RATE_LIMIT_BOOKMARKS,
    RATE_LIMIT_CREATE_BOOKMARK,
    RATE_LIMIT_SUMMARIZE,
    limiter,
)
from app.schemas.bookmark import (
    BookmarkCreate,
    BookmarkMutationResponse,
    BookmarkResponse,
    MessageResponse,
)
from app.schemas.session import SessionPayload
from app.schemas.summary import SummarizeResponse
from app.services import bookmark_service, summarizer_service
from app.services.identity import IdentityContext, require_identity
from app.services.summarizer import SummaryError, get_http_client

logger = structlog.get_logger()


class BookmarkRoute(APIRoute):
    """Route that reports malformed request data as a 400 ValidationError.

    FastAPI would answer 422; bookmark clients only handle 400.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def bookmark_route_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except RequestValidationError as e:
                logger.info("Rejected bookmark request", error_count=len(e.errors()))
                raise ValidationError("Invalid article data") from e

        return bookmark_route_handler


router = APIRouter(prefix="/bookmarks", tags=["bookmarks"], route_class=BookmarkRoute)


async def _json_body(request: Request) -> dict[str, Any] | None:
    """Parsed JSON object body, or None when there is no usable one."""
    if "application/json" not in request.headers.get("content-type", ""):
        return None
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


async def resolve_caller_id(
    request: Request,
    session: SessionPayload,
    body: dict[str, Any] | None = None,
) -> str:
    """Identify the caller; raises ValidationError (400) if nothing matches.

    ``body`` is the already parsed request body; without it the raw JSON
    body is read.
    """
    context = IdentityContext(
        session=session,
        headers=request.headers,
        body=body if body is not None else await _json_body(request),
    )
    return require_identity(context)


@router.get("", response_model=list[BookmarkResponse])
@limiter.limit(RATE_LIMIT_BOOKMARKS)
async def list_bookmarks(
    request: Request,
    session: CurrentSession,
    db: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[BookmarkResponse]:
    """List all bookmarks for the current user, newest first."""
    user_id = await resolve_caller_id(request, session)

    try:
        bookmarks = await bookmark_service.list_bookmarks(db, user_id)
    except SQLAlchemyError as e:
        logger.error("Bookmark list failed", error=str(e))
        raise TransientStoreError("Failed to fetch bookmarks") from e

    return [BookmarkResponse.from_model(bookmark) for bookmark in bookmarks]


@router.post(
    "",
    response_model=BookmarkMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(RATE_LIMIT_CREATE_BOOKMARK)
async def create_bookmark(
    request: Request,
    response: Response,
    data: BookmarkCreate,
    session: CurrentSession,
    db: Annotated[AsyncSession, Depends(get_async_session)],
) -> BookmarkMutationResponse:
    """Bookmark an article.

    Returns 201 for a new bookmark and 200 with the stored record if the
    article was already bookmarked.
    """
    if data.article is None or not data.article.url:
        raise ValidationError("Invalid article data")

    user_id = await resolve_caller_id(
        request,
        session,
        body=data.model_dump(by_alias=True, exclude_none=True),
    )

    try:
        bookmark, created = await bookmark_service.create_bookmark(db, user_id, data)
        await db.commit()
    except SQLAlchemyError as e:
        logger.error("Bookmark create failed", error=str(e))
        raise TransientStoreError(
            "Failed to bookmark article",
            error=describe_store_error(e),
        ) from e

    if not created:
        record_bookmark_operation("duplicate")
        response.status_code = status.HTTP_200_OK
        return BookmarkMutationResponse(
            message="Article already bookmarked",
            bookmark=BookmarkResponse.from_model(bookmark),
        )

    logger.info("Bookmark created", bookmark_id=str(bookmark.id), user_id=user_id)
    record_bookmark_operation("create")
    return BookmarkMutationResponse(
        message="Article bookmarked successfully",
        bookmark=BookmarkResponse.from_model(bookmark),
    )


@router.delete("", response_model=MessageResponse)
@limiter.limit(RATE_LIMIT_BOOKMARKS)
async def delete_bookmark(
    request: Request,
    session: CurrentSession,
    db: Annotated[AsyncSession, Depends(get_async_session)],
    article_id: Annotated[str | None, Query(alias="articleId")] = None,
) -> MessageResponse:
    """Remove a bookmark by article id."""
    if not article_id:
        raise ValidationError("Article ID is required")

    user_id = await resolve_caller_id(request, session)

    try:
        await bookmark_service.delete_bookmark(db, user_id, article_id)
        await db.commit()
    except SQLAlchemyError as e:
        logger.error("Bookmark delete failed", error=str(e))
        raise TransientStoreError("Failed to remove bookmark") from e

    logger.info("Bookmark deleted", article_id=article_id, user_id=user_id)
    record_bookmark_operation("delete")
    return MessageResponse(message="Bookmark removed successfully")


@router.post("/summary", response_model=SummarizeResponse)
@limiter.limit(RATE_LIMIT_SUMMARIZE)
async def summarize_bookmark(
    request: Request,
    session: CurrentSession,
    db: Annotated[AsyncSession, Depends(get_async_session)],
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    article_id: Annotated[str | None, Query(alias="articleId")] = None,
) -> SummarizeResponse | JSONResponse:
    """Summarize one of the caller's saved articles."""
    if not article_id:
        raise ValidationError("Article ID is required")

    user_id = await resolve_caller_id(request, session)

    try:
        bookmark = await bookmark_service.get_bookmark(db, user_id, article_id)
    except SQLAlchemyError as e:
        logger.error("Bookmark lookup failed", error=str(e))
        raise TransientStoreError("Failed to fetch bookmark") from e

    if bookmark is None:
        raise NotFoundError("Bookmark not found")

    prompt = summarizer_service.build_article_prompt(bookmark)
    try:
        summary = await summarizer_service.generate_summary(client, prompt)
    except SummaryError as e:
        record_summary_request("error")
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    record_summary_request("success")
    return SummarizeResponse(summary=summary)
