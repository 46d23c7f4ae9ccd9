"""Quote service: the authorized mutation paths over the quote store.

Every mutation re-checks ownership against the store itself, never against
state the client sent or the service cached:
- edits select the row by id AND owner, then update it filtered by id AND
  owner again, so a row that changed hands in between is never written;
- deletes are filtered by id AND owner in a single store call.

A quote that does not exist and a quote owned by someone else produce the
same NotFound error, so callers cannot discover other users' quote ids.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from app.adapters.identity.base import AbstractIdentityVerifier, VerifiedIdentity
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.store.base import AbstractQuoteStore, Row, StoreError
from app.core.errors import NotFoundAppError, StoreAppError, ValidationAppError
from app.core.logging import hash_identifier
from app.core.rate_limit import enforce_rate_limit
from app.schemas.quote import QuoteRecord
from app.utils.quote_validators import (
    QuoteTextPolicy,
    create_text_policy,
    resolve_author_name,
    update_text_policy,
    validate_quote_text,
)

logger = logging.getLogger(__name__)

NOT_FOUND_OR_FORBIDDEN_MESSAGE = "Quote not found or you do not have permission to edit it"
UPDATE_SUCCESS_MESSAGE = "Quote updated successfully!"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_quote_id() -> str:
    return str(uuid.uuid4())


def _require_string(value: Any, *, code: str, message: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationAppError(code=code, message=message)
    return value


class QuoteService:
    """Create, read, edit and delete quotes on behalf of verified users.

    Attributes:
        store: Quote record store.
        verifier: Turns bearer credentials into verified identities. May be
            passed as a zero-argument factory, resolved on the first
            authentication so read-only calls never need auth configured.
        limiter: Per-user budget for mutating calls; None disables limiting.
    """

    def __init__(
        self,
        *,
        store: AbstractQuoteStore,
        verifier: AbstractIdentityVerifier | Callable[[], AbstractIdentityVerifier],
        limiter: AbstractRateLimiter | None = None,
        update_policy: QuoteTextPolicy | None = None,
        create_policy: QuoteTextPolicy | None = None,
        author_max_chars: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_quote_id,
    ) -> None:
        self.store = store
        self._verifier = verifier if isinstance(verifier, AbstractIdentityVerifier) else None
        self._verifier_factory = None if self._verifier is not None else verifier
        self.limiter = limiter
        self._update_policy = update_policy or update_text_policy()
        self._create_policy = create_policy or create_text_policy()
        self._author_max_chars = author_max_chars
        self._clock = clock
        self._id_factory = id_factory

    @property
    def verifier(self) -> AbstractIdentityVerifier:
        """Identity verifier, built on first use when given as a factory."""
        if self._verifier is None:
            self._verifier = self._verifier_factory()
        return self._verifier

    @verifier.setter
    def verifier(self, verifier: AbstractIdentityVerifier) -> None:
        self._verifier = verifier

    async def authenticate(self, credential: str | None) -> VerifiedIdentity:
        """Verify a bearer credential (AuthenticationAppError on failure)."""
        return await self.verifier.verify(credential)

    def check_rate_limit(self, identity: VerifiedIdentity) -> None:
        """Count one mutating call against the caller's budget.

        Raises:
            RateLimitAppError: When the caller exhausted the current window.
        """
        if self.limiter is None:
            return
        enforce_rate_limit(self.limiter, identity.user_id)

    async def update_quote(
        self,
        credential: str | None,
        quote_id: Any,
        raw_text: Any,
        raw_author: Any = None,
    ) -> QuoteRecord:
        """Authenticate, rate-limit, validate and apply an edit.

        Args:
            credential: Bearer credential of the caller.
            quote_id: Id of the quote to edit (must be a non-empty string).
            raw_text: New quote text, untrimmed.
            raw_author: New author name; blank or missing means "Unknown".

        Returns:
            The updated quote.

        Raises:
            AuthenticationAppError: Credential missing or invalid.
            RateLimitAppError: Caller exhausted the current window.
            ValidationAppError: Missing id/text or text out of bounds.
            NotFoundAppError: No quote with this id owned by the caller.
            StoreAppError: Store failure or nothing written.
        """
        identity = await self.authenticate(credential)
        self.check_rate_limit(identity)
        return await self.apply_update(identity, quote_id, raw_text, raw_author)

    async def apply_update(
        self,
        identity: VerifiedIdentity,
        quote_id: Any,
        raw_text: Any,
        raw_author: Any = None,
    ) -> QuoteRecord:
        """Validate and write an edit for an already verified, throttled caller."""
        quote_id = _require_string(
            quote_id, code="quote_id_required", message="Quote ID is required"
        )
        raw_text = _require_string(
            raw_text, code="quote_text_required", message="Quote text is required"
        )
        quote_text = validate_quote_text(raw_text, self._update_policy)
        author_name = resolve_author_name(raw_author, self._author_max_chars)

        owner_filter = {"id": quote_id, "user_id": identity.user_id}
        user_hash = hash_identifier(identity.user_id)

        try:
            existing = await self.store.select(owner_filter)
        except StoreError as exc:
            logger.error(
                "quote.update.ownership_check_failed",
                exc_info=exc,
                extra={"quote_id": quote_id, "user_hash": user_hash},
            )
            raise StoreAppError(
                code="ownership_check_failed",
                message="Failed to verify quote ownership",
            ) from exc

        if not existing:
            logger.info(
                "quote.update.not_found",
                extra={"quote_id": quote_id, "user_hash": user_hash},
            )
            raise NotFoundAppError(code="quote_not_found", message=NOT_FOUND_OR_FORBIDDEN_MESSAGE)

        created_at = existing[0].get("created_at")
        updated_at = self._clock()
        if isinstance(created_at, datetime) and updated_at < created_at:
            updated_at = created_at

        try:
            rows = await self.store.update(
                owner_filter,
                {
                    "quote_text": quote_text,
                    "author_name": author_name,
                    "updated_at": updated_at,
                },
            )
        except StoreError as exc:
            logger.error(
                "quote.update.write_failed",
                exc_info=exc,
                extra={"quote_id": quote_id, "user_hash": user_hash},
            )
            raise StoreAppError(
                code="update_failed",
                message="Failed to update quote in database",
            ) from exc

        if not rows:
            logger.error(
                "quote.update.no_rows_affected",
                extra={"quote_id": quote_id, "user_hash": user_hash},
            )
            raise StoreAppError(
                code="update_failed",
                message="Failed to update quote in database",
            )

        logger.info(
            "quote.update.success",
            extra={
                "quote_id": quote_id,
                "user_hash": user_hash,
                "char_count": len(quote_text),
            },
        )
        return QuoteRecord.model_validate(rows[0])

    async def create_quote(
        self,
        identity: VerifiedIdentity,
        raw_text: Any,
        raw_author: Any = None,
    ) -> QuoteRecord:
        """Store a new quote owned by ``identity``.

        Submissions use their own length policy (up to 500 characters by
        default), independent of the edit bounds.
        """
        self.check_rate_limit(identity)

        raw_text = _require_string(
            raw_text, code="quote_text_required", message="Quote text is required"
        )
        if not raw_text.strip():
            raise ValidationAppError(code="quote_text_required", message="Quote text is required")
        quote_text = validate_quote_text(raw_text, self._create_policy)
        author_name = resolve_author_name(raw_author, self._author_max_chars)

        now = self._clock()
        row: Row = {
            "id": self._id_factory(),
            "quote_text": quote_text,
            "author_name": author_name,
            "user_id": identity.user_id,
            "created_at": now,
            "updated_at": now,
        }

        try:
            stored = await self.store.insert(row)
        except StoreError as exc:
            logger.error(
                "quote.create.failed",
                exc_info=exc,
                extra={"user_hash": hash_identifier(identity.user_id)},
            )
            raise StoreAppError(code="create_failed", message="Failed to save quote") from exc

        logger.info(
            "quote.create.success",
            extra={
                "quote_id": stored["id"],
                "user_hash": hash_identifier(identity.user_id),
                "char_count": len(quote_text),
            },
        )
        return QuoteRecord.model_validate(stored)

    async def list_quotes(self) -> list[QuoteRecord]:
        """All quotes, newest first (the public gallery)."""
        rows = await self._select({}, action="list")
        return [QuoteRecord.model_validate(row) for row in rows]

    async def list_user_quotes(self, identity: VerifiedIdentity) -> list[QuoteRecord]:
        """Quotes owned by ``identity``, newest first."""
        rows = await self._select({"user_id": identity.user_id}, action="list_mine")
        return [QuoteRecord.model_validate(row) for row in rows]

    async def get_quote(self, quote_id: str) -> QuoteRecord:
        """One quote by id, regardless of owner (NotFoundAppError if absent)."""
        rows = await self._select({"id": quote_id}, action="get")
        if not rows:
            raise NotFoundAppError(code="quote_not_found", message="Quote not found")
        return QuoteRecord.model_validate(rows[0])

    async def delete_quote(self, identity: VerifiedIdentity, quote_id: str) -> None:
        """Delete a quote owned by ``identity``.

        Raises:
            NotFoundAppError: Nothing matched both the id and the owner.
        """
        self.check_rate_limit(identity)

        try:
            deleted = await self.store.delete({"id": quote_id, "user_id": identity.user_id})
        except StoreError as exc:
            logger.error("quote.delete.failed", exc_info=exc, extra={"quote_id": quote_id})
            raise StoreAppError(code="delete_failed", message="Failed to delete quote") from exc

        if not deleted:
            raise NotFoundAppError(
                code="quote_not_found",
                message="Quote not found or you do not have permission to delete it",
            )

        logger.info(
            "quote.delete.success",
            extra={"quote_id": quote_id, "user_hash": hash_identifier(identity.user_id)},
        )

    async def _select(self, filters: dict[str, Any], *, action: str) -> list[Row]:
        try:
            return await self.store.select(filters, order_by="created_at", descending=True)
        except StoreError as exc:
            logger.error("quote.read.failed", exc_info=exc, extra={"action": action})
            raise StoreAppError(code="read_failed", message="Failed to load quotes") from exc
