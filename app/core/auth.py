"""Bearer credential handling.

This module extracts the bearer credential from the Authorization header and
provides the process-wide identity verifier built from configuration.

Design principles:
- Single Responsibility: only credential extraction and verifier wiring;
  signature checks live in the identity adapter
- Configuration-driven: the token secret is managed via env vars, never hardcoded
- Testable: pure parsing function with no FastAPI dependencies
"""

from __future__ import annotations

import logging

from app.adapters.identity.base import AbstractIdentityVerifier
from app.adapters.identity.jwt_verifier import JWTIdentityVerifier
from app.core.config import settings
from app.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

_verifier: AbstractIdentityVerifier | None = None
_verifier_config: tuple[str | None, str, str | None] | None = None


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the credential carried by an Authorization header value.

    Args:
        authorization: Raw header value, or None when the header is absent.

    Returns:
        The token without its ``Bearer`` prefix, or None when there is none.

    Examples:
        >>> extract_bearer_token("Bearer abc.def.ghi")
        'abc.def.ghi'
        >>> extract_bearer_token("bearer   abc ")
        'abc'
        >>> extract_bearer_token("Basic dXNlcg==") is None
        True
        >>> extract_bearer_token(None) is None
        True
    """
    if not authorization:
        return None

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None

    token = token.strip()
    return token or None


def get_identity_verifier() -> AbstractIdentityVerifier:
    """Return the process-wide identity verifier.

    Rebuilt when the auth settings change (primarily in tests).

    Raises:
        ConfigurationAppError: If no token secret is configured.
    """
    global _verifier, _verifier_config

    cfg = settings.auth
    config = (cfg.jwt_secret, cfg.jwt_algorithm, cfg.jwt_audience)

    if _verifier is None or _verifier_config != config:
        if not cfg.jwt_secret:
            logger.error(
                "auth.not_configured",
                extra={"hint": "Set AUTH_JWT_SECRET"},
            )
            raise ConfigurationAppError(
                code="auth_not_configured",
                message="Authentication is not configured",
                details={"hint": "Set AUTH_JWT_SECRET environment variable"},
            )
        _verifier = JWTIdentityVerifier(
            secret=cfg.jwt_secret,
            algorithm=cfg.jwt_algorithm,
            audience=cfg.jwt_audience,
        )
        _verifier_config = config

    return _verifier
