"""Identity verification adapters (bearer credential -> verified user)."""

from app.adapters.identity.base import AbstractIdentityVerifier, VerifiedIdentity
from app.adapters.identity.jwt_verifier import JWTIdentityVerifier

__all__ = ["AbstractIdentityVerifier", "JWTIdentityVerifier", "VerifiedIdentity"]
