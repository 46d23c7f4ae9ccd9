"""Unit tests for bearer token extraction and verification."""

from unittest.mock import patch

import pytest

from app.adapters.identity.jwt_verifier import UNAUTHORIZED_MESSAGE, JWTIdentityVerifier
from app.core import auth
from app.core.auth import extract_bearer_token, get_identity_verifier
from app.core.errors import AuthenticationAppError, ConfigurationAppError
from conftest import OWNER_ID, make_token

SECRET = "unit-test-secret"


class TestExtractBearerToken:
    """Test Authorization header parsing."""

    def test_extracts_token(self) -> None:
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self) -> None:
        assert extract_bearer_token("bearer abc") == "abc"
        assert extract_bearer_token("BEARER abc") == "abc"

    def test_surrounding_whitespace_is_ignored(self) -> None:
        assert extract_bearer_token("  Bearer   abc  ") == "abc"

    @pytest.mark.parametrize("value", [None, "", "Bearer", "Bearer   ", "Basic dXNlcjpwYXNz", "abc"])
    def test_returns_none_without_bearer_token(self, value: str | None) -> None:
        assert extract_bearer_token(value) is None


class TestJWTIdentityVerifier:
    """Test access token verification."""

    @pytest.mark.asyncio
    async def test_valid_token_yields_identity(self) -> None:
        verifier = JWTIdentityVerifier(secret=SECRET)
        token = make_token(OWNER_ID, secret=SECRET, email="owner@example.com")

        identity = await verifier.verify(token)

        assert identity.user_id == OWNER_ID
        assert identity.email == "owner@example.com"
        assert identity.claims["sub"] == OWNER_ID

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credential", [None, ""])
    async def test_missing_token(self, credential: str | None) -> None:
        verifier = JWTIdentityVerifier(secret=SECRET)

        with pytest.raises(AuthenticationAppError) as exc_info:
            await verifier.verify(credential)

        assert exc_info.value.code == "missing_token"
        assert exc_info.value.message == UNAUTHORIZED_MESSAGE
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_signature(self) -> None:
        verifier = JWTIdentityVerifier(secret=SECRET)
        token = make_token(OWNER_ID, secret="some-other-secret")

        with pytest.raises(AuthenticationAppError) as exc_info:
            await verifier.verify(token)

        assert exc_info.value.code == "invalid_token"

    @pytest.mark.asyncio
    async def test_expired_token(self) -> None:
        verifier = JWTIdentityVerifier(secret=SECRET)
        token = make_token(OWNER_ID, secret=SECRET, expires_in=-60)

        with pytest.raises(AuthenticationAppError) as exc_info:
            await verifier.verify(token)

        assert exc_info.value.code == "token_expired"

    @pytest.mark.asyncio
    async def test_garbage_token(self) -> None:
        verifier = JWTIdentityVerifier(secret=SECRET)

        with pytest.raises(AuthenticationAppError):
            await verifier.verify("not-a-jwt")

    @pytest.mark.asyncio
    async def test_wrong_audience(self) -> None:
        verifier = JWTIdentityVerifier(secret=SECRET, audience="authenticated")
        token = make_token(OWNER_ID, secret=SECRET, audience="anon")

        with pytest.raises(AuthenticationAppError):
            await verifier.verify(token)

    @pytest.mark.asyncio
    async def test_audience_check_can_be_disabled(self) -> None:
        verifier = JWTIdentityVerifier(secret=SECRET, audience=None)
        token = make_token(OWNER_ID, secret=SECRET, audience="anything")

        identity = await verifier.verify(token)

        assert identity.user_id == OWNER_ID

    @pytest.mark.asyncio
    async def test_token_without_subject(self) -> None:
        verifier = JWTIdentityVerifier(secret=SECRET)
        token = make_token(None, secret=SECRET)

        with pytest.raises(AuthenticationAppError) as exc_info:
            await verifier.verify(token)

        assert exc_info.value.code == "invalid_token"

    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ValueError):
            JWTIdentityVerifier(secret="")


class TestGetIdentityVerifier:
    """Test the process-wide verifier wiring."""

    @pytest.fixture(autouse=True)
    def _reset_cache(self):
        auth._verifier = None
        auth._verifier_config = None
        yield
        auth._verifier = None
        auth._verifier_config = None

    @patch("app.core.auth.settings")
    def test_raises_when_secret_missing(self, mock_settings) -> None:
        mock_settings.auth.jwt_secret = None
        mock_settings.auth.jwt_algorithm = "HS256"
        mock_settings.auth.jwt_audience = "authenticated"

        with pytest.raises(ConfigurationAppError) as exc_info:
            get_identity_verifier()

        assert exc_info.value.code == "auth_not_configured"
        assert exc_info.value.status_code == 500

    @patch("app.core.auth.settings")
    def test_instance_is_cached_until_config_changes(self, mock_settings) -> None:
        mock_settings.auth.jwt_secret = "first"
        mock_settings.auth.jwt_algorithm = "HS256"
        mock_settings.auth.jwt_audience = "authenticated"

        first = get_identity_verifier()
        assert get_identity_verifier() is first

        mock_settings.auth.jwt_secret = "second"
        assert get_identity_verifier() is not first
