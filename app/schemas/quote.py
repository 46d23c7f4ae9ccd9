"""Pydantic schemas for quote records and quote endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class QuoteRecord(BaseModel):
    """A stored quote as returned to clients."""

    id: str = Field(..., description="Opaque unique identifier of the quote.")
    quote_text: str = Field(..., description="Quote text (raw, not HTML-escaped).")
    author_name: str = Field(..., description="Author name, 'Unknown' when not given.")
    user_id: str = Field(..., description="Identifier of the user who submitted the quote.")
    created_at: datetime = Field(..., description="Creation timestamp (UTC).")
    updated_at: datetime = Field(..., description="Last modification timestamp (UTC).")


class CreateQuoteRequest(BaseModel):
    """Body of a new quote submission.

    Length bounds are enforced by the quote service so the error messages
    match the edit path.
    """

    quote_text: str = Field(..., description="Quote text (trimmed before storing).")
    author_name: str | None = Field(
        default=None,
        description="Author name; blank or missing stores 'Unknown'.",
    )


class UpdateQuoteResponse(BaseModel):
    """Successful answer of the update-quote endpoint."""

    success: bool = True
    message: str = Field(..., description="Human-readable confirmation.")
    quote: QuoteRecord


class QuoteListResponse(BaseModel):
    quotes: List[QuoteRecord] = Field(default_factory=list)
    count: int = Field(..., description="Number of quotes returned.")


class DeleteQuoteResponse(BaseModel):
    success: bool = True
    message: str
    quote_id: str
