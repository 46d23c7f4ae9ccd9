"""Tests for the update-quote boundary function (no server involved)."""

import json
from unittest.mock import AsyncMock, Mock

import pytest

from app.adapters.store.in_memory import InMemoryQuoteStore
from app.services.quote_service import QuoteService
from app.services.update_quote_handler import (
    CORS_ALLOW_HEADERS,
    EndpointRequest,
    handle_update_quote,
    parse_json_body,
)
from app.core.errors import ValidationAppError
from conftest import OTHER_ID, OWNER_ID, make_token


def build_request(
    body: object = None,
    *,
    method: str = "POST",
    user_id: str | None = OWNER_ID,
    raw_body: bytes | None = None,
) -> EndpointRequest:
    headers = {"Content-Type": "application/json"}
    if user_id is not None:
        headers["Authorization"] = f"Bearer {make_token(user_id)}"
    if raw_body is None:
        raw_body = json.dumps(body).encode() if body is not None else b""
    return EndpointRequest(method=method, headers=headers, body=raw_body)


def valid_body(**overrides) -> dict:
    body = {"quote_id": "q1", "quote_text": "A perfectly fine quote.", "author_name": "Ann"}
    body.update(overrides)
    return body


class TestEndToEndScenarios:
    @pytest.mark.asyncio
    async def test_owner_update_trims_text_and_defaults_author(self, service: QuoteService) -> None:
        request = build_request({"quote_id": "q1", "quote_text": "   Be the change.   ", "author_name": ""})

        response = await handle_update_quote(request, service)

        assert response.status_code == 200
        assert response.body["success"] is True
        assert response.body["message"] == "Quote updated successfully!"
        assert response.body["quote"]["quote_text"] == "Be the change."
        assert response.body["quote"]["author_name"] == "Unknown"
        assert response.body["quote"]["id"] == "q1"

    @pytest.mark.asyncio
    async def test_non_owner_gets_404_and_record_is_unchanged(
        self, service: QuoteService, store: InMemoryQuoteStore
    ) -> None:
        before = await store.select({"id": "q2"})

        response = await handle_update_quote(
            build_request(valid_body(quote_id="q2"), user_id=OWNER_ID), service
        )

        assert response.status_code == 404
        assert response.body["error"] == "Quote not found or you do not have permission to edit it"
        assert await store.select({"id": "q2"}) == before

    @pytest.mark.asyncio
    async def test_short_text_gets_400_mentioning_minimum(self, service: QuoteService) -> None:
        response = await handle_update_quote(build_request(valid_body(quote_text="short")), service)

        assert response.status_code == 400
        assert "at least 10 characters" in response.body["error"]


class TestMethods:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["POST", "PUT", "put", "post"])
    async def test_post_and_put_accepted(self, service: QuoteService, method: str) -> None:
        response = await handle_update_quote(build_request(valid_body(), method=method), service)

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "PATCH", "DELETE"])
    async def test_other_methods_get_405(self, service: QuoteService, method: str) -> None:
        service.verifier = AsyncMock(wraps=service.verifier)

        response = await handle_update_quote(build_request(valid_body(), method=method), service)

        assert response.status_code == 405
        assert response.body["error"] == "Method not allowed"
        service.verifier.verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_options_preflight(self, service: QuoteService) -> None:
        response = await handle_update_quote(EndpointRequest(method="OPTIONS"), service)

        assert response.status_code == 200
        assert response.body is None
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Access-Control-Allow-Headers"] == CORS_ALLOW_HEADERS

    @pytest.mark.asyncio
    async def test_cors_headers_on_errors_and_custom_origin(self, service: QuoteService) -> None:
        response = await handle_update_quote(
            build_request(valid_body(), method="GET"),
            service,
            allow_origin="https://quotes.example",
        )

        assert response.headers["Access-Control-Allow-Origin"] == "https://quotes.example"
        assert "Access-Control-Allow-Headers" in response.headers


class TestAuthenticationAndThrottling:
    @pytest.mark.asyncio
    async def test_missing_token_gets_401(self, service: QuoteService) -> None:
        response = await handle_update_quote(build_request(valid_body(), user_id=None), service)

        assert response.status_code == 401
        assert response.body["error"] == "Unauthorized: Invalid or missing token"

    @pytest.mark.asyncio
    async def test_invalid_token_gets_401_without_touching_store(self, service: QuoteService) -> None:
        service.store = AsyncMock(wraps=service.store)
        request = EndpointRequest(
            method="POST",
            headers={"authorization": "Bearer forged.token.value"},
            body=json.dumps(valid_body()).encode(),
        )

        response = await handle_update_quote(request, service)

        assert response.status_code == 401
        service.store.select.assert_not_called()
        service.store.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_tenth_succeeds_eleventh_is_429_then_window_resets(
        self, service: QuoteService, limiter_clock: Mock
    ) -> None:
        for n in range(10):
            response = await handle_update_quote(
                build_request(valid_body(quote_text=f"Quote revision number {n}")), service
            )
            assert response.status_code == 200

        response = await handle_update_quote(build_request(valid_body()), service)
        assert response.status_code == 429
        assert response.body["error"] == "Rate limit exceeded. Please try again later."
        assert response.headers["Retry-After"] == "60"
        assert response.headers["X-RateLimit-Limit"] == "10"
        assert response.headers["X-RateLimit-Remaining"] == "0"

        limiter_clock.return_value += 60.5
        response = await handle_update_quote(build_request(valid_body()), service)
        assert response.status_code == 200
        assert service.limiter.consume(OWNER_ID).remaining == 8

    @pytest.mark.asyncio
    async def test_rate_limit_is_checked_before_body_parsing(self, service: QuoteService) -> None:
        for _ in range(10):
            service.limiter.consume(OWNER_ID)

        response = await handle_update_quote(build_request(raw_body=b"{not json"), service)

        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_invalid_requests_still_count_against_budget(self, service: QuoteService) -> None:
        for _ in range(10):
            response = await handle_update_quote(build_request(valid_body(quote_text="short")), service)
            assert response.status_code == 400

        response = await handle_update_quote(build_request(valid_body()), service)
        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_other_users_budget_is_independent(self, service: QuoteService) -> None:
        for _ in range(10):
            service.limiter.consume(OWNER_ID)

        response = await handle_update_quote(
            build_request(valid_body(quote_id="q2"), user_id=OTHER_ID), service
        )

        assert response.status_code == 200
        assert response.body["quote"]["user_id"] == OTHER_ID


class TestPayloadValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_body", [b"", b"{not json", b"[1, 2]", b'"text"', b"\xff\xfe"])
    async def test_malformed_body(self, service: QuoteService, raw_body: bytes) -> None:
        response = await handle_update_quote(build_request(raw_body=raw_body), service)

        assert response.status_code == 400
        assert response.body["error"] == "Invalid JSON in request body"
        assert response.body["code"] == "invalid_json"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body, message",
        [
            ({"quote_text": "A perfectly fine quote."}, "Quote ID is required"),
            ({"quote_id": 7, "quote_text": "A perfectly fine quote."}, "Quote ID is required"),
            ({"quote_id": "q1"}, "Quote text is required"),
            ({"quote_id": "q1", "quote_text": 1234567890123}, "Quote text is required"),
            ({"quote_id": "q1", "quote_text": "y" * 281}, "Quote must be no more than 280 characters long"),
        ],
    )
    async def test_field_errors(self, service: QuoteService, body: dict, message: str) -> None:
        response = await handle_update_quote(build_request(body), service)

        assert response.status_code == 400
        assert response.body["error"] == message

    @pytest.mark.asyncio
    async def test_author_is_optional_and_trimmed(self, service: QuoteService) -> None:
        response = await handle_update_quote(
            build_request({"quote_id": "q1", "quote_text": "Without an author here"}), service
        )
        assert response.body["quote"]["author_name"] == "Unknown"

        response = await handle_update_quote(
            build_request(valid_body(author_name="  Rumi  ")), service
        )
        assert response.body["quote"]["author_name"] == "Rumi"

    @pytest.mark.asyncio
    async def test_repeated_identical_input_is_stable(self, service: QuoteService) -> None:
        first = await handle_update_quote(build_request(valid_body()), service)
        second = await handle_update_quote(build_request(valid_body()), service)

        for field in ("quote_text", "author_name", "user_id", "created_at"):
            assert first.body["quote"][field] == second.body["quote"][field]
        assert first.body["quote"]["updated_at"] != second.body["quote"]["updated_at"]


class TestFailures:
    @pytest.mark.asyncio
    async def test_unexpected_exception_is_generic_500(self, service: QuoteService) -> None:
        service.store = AsyncMock()
        service.store.select.side_effect = RuntimeError("password=hunter2 at db-host-7")

        response = await handle_update_quote(build_request(valid_body()), service)

        assert response.status_code == 500
        assert response.body["error"] == "Internal server error"
        assert "hunter2" not in json.dumps(response.body)
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_store_reports_no_rows(self, service: QuoteService, store: InMemoryQuoteStore) -> None:
        service.store = AsyncMock(wraps=store)
        service.store.select.side_effect = store.select
        service.store.update.return_value = []

        response = await handle_update_quote(build_request(valid_body()), service)

        assert response.status_code == 500
        assert response.body["error"] == "Failed to update quote in database"


def test_parse_json_body_accepts_objects_only() -> None:
    assert parse_json_body(b'{"a": 1}') == {"a": 1}

    with pytest.raises(ValidationAppError):
        parse_json_body(b"null")


def test_header_lookup_is_case_insensitive() -> None:
    request = EndpointRequest(method="POST", headers={"authorization": "Bearer x"})

    assert request.header("Authorization") == "Bearer x"
    assert request.header("X-Missing") is None
