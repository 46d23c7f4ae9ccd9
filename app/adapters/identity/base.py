"""Identity verifier interfaces.

A verifier turns the bearer credential sent by a client into a trusted user
identity. How the credential is checked (local signature check, remote call
to the auth provider, ...) is up to the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class VerifiedIdentity:
    """A caller whose credential has been verified.

    Attributes:
        user_id: Stable identifier of the user; recorded as quote owner.
        email: Email claim, if the credential carries one.
        claims: Remaining credential claims, for diagnostics only.
    """

    user_id: str
    email: str | None = None
    claims: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


class AbstractIdentityVerifier(ABC):
    """Interface for bearer credential verifiers."""

    @abstractmethod
    async def verify(self, credential: str | None) -> VerifiedIdentity:
        """Verify a bearer credential.

        Args:
            credential: Raw credential (without the ``Bearer`` prefix), or None.

        Returns:
            VerifiedIdentity of the caller.

        Raises:
            AuthenticationAppError: If the credential is missing or invalid.
        """
        ...
