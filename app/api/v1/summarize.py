"""Summarization relay endpoint."""

from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.core.observability import record_summary_request
from app.core.rate_limit import RATE_LIMIT_SUMMARIZE, limiter
from app.schemas.summary import SummarizeRequest, SummarizeResponse
from app.services import summarizer_service
from app.services.summarizer import SummaryError, get_http_client

router = APIRouter(tags=["summarize"])


@router.post("/summarize", response_model=SummarizeResponse)
@limiter.limit(RATE_LIMIT_SUMMARIZE)
async def summarize(
    request: Request,
    data: SummarizeRequest,
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> SummarizeResponse | JSONResponse:
    """Generate a Markdown summary for a prompt.

    Errors are returned as ``{"error": ...}`` with the upstream status code
    when the LLM API rejects the request.
    """
    if not data.prompt:
        return JSONResponse(status_code=400, content={"error": "Missing prompt in request body"})

    try:
        summary = await summarizer_service.generate_summary(client, data.prompt, data.max_tokens)
    except SummaryError as e:
        record_summary_request("upstream_error" if e.status_code != 500 else "error")
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    record_summary_request("success")
    return SummarizeResponse(summary=summary)
