"""Article summarization via an OpenAI-compatible chat completions API."""

from collections.abc import AsyncGenerator

import httpx
import structlog

from app.core.config import get_settings
from app.models.bookmark import Bookmark

settings = get_settings()
logger = structlog.get_logger()

DEFAULT_MAX_TOKENS = 500
TEMPERATURE = 0.3  # Low temperature keeps summaries factual

SYSTEM_PROMPT = """You are a news article summarizer that creates clear, concise, and objective summaries in Markdown format.

Follow these formatting rules exactly:
1. Use "# Key Points" as the main title followed by bullet points (use "-" for bullets)
2. Use "## Context" for the second section with a concise paragraph
3. Use "## Impact" for the third section with a concise paragraph
4. Use proper markdown syntax throughout (bold, italics, etc. where appropriate)
5. Keep the entire summary under 300 words for readability
6. Be factual and avoid opinion or speculation"""


class SummaryError(Exception):
    """Summary could not be produced; ``status_code`` is relayed to the caller."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Dependency that provides an HTTP client for the summarization API."""
    async with httpx.AsyncClient(timeout=settings.summary_timeout) as client:
        yield client


def build_article_prompt(bookmark: Bookmark) -> str:
    """Build the summarization prompt for a saved article."""
    return (
        "Generate a concise and informative summary of this news article.\n"
        f"Title: {bookmark.title}\n"
        f"Content: {bookmark.description or 'No description available'}\n"
        f"Source: {bookmark.source_name}\n"
        "\n"
        "Format the summary with these sections:\n"
        "# Key Points\n"
        "- (bullet points of the most important information)\n"
        "\n"
        "## Context\n"
        "(brief background context for the news)\n"
        "\n"
        "## Impact\n"
        "(potential implications or why this matters)\n"
    )


async def generate_summary(
    client: httpx.AsyncClient,
    prompt: str,
    max_tokens: int | None = None,
) -> str:
    """Ask the LLM API for a Markdown summary of ``prompt``.

    Raises SummaryError when the API key is missing, the upstream call
    fails, or the response has no completion.
    """
    if not settings.groq_api_key:
        raise SummaryError("GROQ API key not configured", status_code=500)

    payload = {
        "model": settings.summary_model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": TEMPERATURE,
        "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
    }

    try:
        response = await client.post(
            settings.groq_api_url,
            json=payload,
            headers={"Authorization": f"Bearer {settings.groq_api_key}"},
        )
    except httpx.RequestError as e:
        logger.warning("Summarization API connection error", error=str(e))
        raise SummaryError("Internal server error", status_code=500) from e

    if not response.is_success:
        logger.warning(
            "Summarization API error",
            status_code=response.status_code,
        )
        raise SummaryError("Failed to generate summary", status_code=response.status_code)

    try:
        return response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        logger.warning("Malformed summarization response", error=str(e))
        raise SummaryError("Internal server error", status_code=500) from e
