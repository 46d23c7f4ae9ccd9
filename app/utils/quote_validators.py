"""Validation rules for quote text and author names.

Pure functions, no I/O. The edit and the submit paths use two independent
text policies (10-280 characters when editing, up to 500 when submitting);
they are configured separately and never merged.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.config import settings
from app.core.errors import ValidationAppError

UNKNOWN_AUTHOR = "Unknown"


class QuoteTooShortError(ValidationAppError):
    """Trimmed quote text is shorter than the policy minimum."""


class QuoteTooLongError(ValidationAppError):
    """Trimmed quote text is longer than the policy maximum."""


@dataclass(frozen=True)
class QuoteTextPolicy:
    """Length bounds (inclusive, after trimming) for quote text."""

    min_chars: int
    max_chars: int

    def __post_init__(self) -> None:
        if self.min_chars < 1:
            raise ValueError("min_chars must be >= 1")
        if self.max_chars < self.min_chars:
            raise ValueError("max_chars must be >= min_chars")


def update_text_policy() -> QuoteTextPolicy:
    """Bounds applied when an owner edits a quote."""
    return QuoteTextPolicy(
        min_chars=settings.app.quote_update_min_chars,
        max_chars=settings.app.quote_update_max_chars,
    )


def create_text_policy() -> QuoteTextPolicy:
    """Bounds applied when a new quote is submitted."""
    return QuoteTextPolicy(min_chars=1, max_chars=settings.app.quote_create_max_chars)


def validate_quote_text(text: str, policy: QuoteTextPolicy) -> str:
    """Trim quote text and check it against ``policy``.

    Args:
        text: Raw quote text as submitted.
        policy: Length bounds to enforce.

    Returns:
        The trimmed text.

    Raises:
        QuoteTooShortError: If the trimmed text is shorter than the minimum.
        QuoteTooLongError: If the trimmed text is longer than the maximum.
    """
    trimmed = text.strip()
    length = len(trimmed)

    if length < policy.min_chars:
        raise QuoteTooShortError(
            code="quote_too_short",
            message=f"Quote must be at least {policy.min_chars} characters long",
            details={"min_value": policy.min_chars, "actual_value": length},
        )
    if length > policy.max_chars:
        raise QuoteTooLongError(
            code="quote_too_long",
            message=f"Quote must be no more than {policy.max_chars} characters long",
            details={"max_value": policy.max_chars, "actual_value": length},
        )
    return trimmed


def resolve_author_name(raw: object, max_chars: int | None = None) -> str:
    """Return the author name to store.

    Non-string, missing and blank values resolve to ``"Unknown"``; anything
    else is trimmed and clamped to ``max_chars``.

    Examples:
        >>> resolve_author_name("  Gandhi ")
        'Gandhi'
        >>> resolve_author_name("   ")
        'Unknown'
        >>> resolve_author_name(None)
        'Unknown'
    """
    if not isinstance(raw, str):
        return UNKNOWN_AUTHOR

    limit = max_chars if max_chars is not None else settings.app.author_max_chars
    trimmed = raw.strip()
    if not trimmed:
        return UNKNOWN_AUTHOR
    # Clamping can expose trailing whitespace from the middle of the name
    return trimmed[:limit].rstrip()
