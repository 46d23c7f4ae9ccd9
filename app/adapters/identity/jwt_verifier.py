"""Bearer token verifier for provider-issued JWT access tokens."""

from __future__ import annotations

import logging
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from app.adapters.identity.base import AbstractIdentityVerifier, VerifiedIdentity
from app.core.errors import AuthenticationAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized: Invalid or missing token"


class JWTIdentityVerifier(AbstractIdentityVerifier):
    """Verify HS256 (or other configured algorithm) signed access tokens.

    The ``sub`` claim becomes the user id. Expiry is always enforced; the
    audience is checked when one is configured.
    """

    def __init__(
        self,
        *,
        secret: str,
        algorithm: str = "HS256",
        audience: str | None = "authenticated",
    ) -> None:
        if not secret:
            raise ValueError("secret must be a non-empty string")
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience or None

    def _decode(self, token: str) -> dict[str, Any]:
        options = {"verify_aud": self._audience is not None}
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            audience=self._audience,
            options=options,
        )

    async def verify(self, credential: str | None) -> VerifiedIdentity:
        if not credential:
            logger.warning("auth.missing_token")
            raise AuthenticationAppError(code="missing_token", message=UNAUTHORIZED_MESSAGE)

        try:
            claims = self._decode(credential)
        except ExpiredSignatureError as exc:
            logger.warning(
                "auth.invalid_token",
                extra={"reason": "expired", "token_hash": hash_identifier(credential)},
            )
            raise AuthenticationAppError(code="token_expired", message=UNAUTHORIZED_MESSAGE) from exc
        except JWTError as exc:
            logger.warning(
                "auth.invalid_token",
                extra={"reason": type(exc).__name__, "token_hash": hash_identifier(credential)},
            )
            raise AuthenticationAppError(code="invalid_token", message=UNAUTHORIZED_MESSAGE) from exc

        user_id = claims.get("sub")
        if not isinstance(user_id, str) or not user_id:
            logger.warning(
                "auth.invalid_token",
                extra={"reason": "missing_sub", "token_hash": hash_identifier(credential)},
            )
            raise AuthenticationAppError(code="invalid_token", message=UNAUTHORIZED_MESSAGE)

        email = claims.get("email")
        return VerifiedIdentity(
            user_id=user_id,
            email=email if isinstance(email, str) else None,
            claims=claims,
        )
