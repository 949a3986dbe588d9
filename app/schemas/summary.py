"""Summarization Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class SummarizeRequest(BaseModel):
    """Schema for a summarization request."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    prompt: str | None = None
    max_tokens: int | None = Field(default=None, alias="maxTokens", ge=1, le=4096)


class SummarizeResponse(BaseModel):
    summary: str
