from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import HTMLResponse, JSONResponse

from app.adapters.identity.base import VerifiedIdentity
from app.api.dependencies import get_current_identity, get_quote_service
from app.core.config import settings
from app.schemas.quote import (
    CreateQuoteRequest,
    DeleteQuoteResponse,
    QuoteListResponse,
    QuoteRecord,
    UpdateQuoteResponse,
)
from app.services.quote_service import QuoteService
from app.services.update_quote_handler import EndpointRequest, handle_update_quote
from app.utils.text_sanitizer import render_quote_card

router = APIRouter(tags=["Quotes"])

ServiceDep = Annotated[QuoteService, Depends(get_quote_service)]
IdentityDep = Annotated[VerifiedIdentity, Depends(get_current_identity)]


@router.post(
    "/quotes",
    response_model=QuoteRecord,
    status_code=status.HTTP_201_CREATED,
)
async def create_quote(
    body: CreateQuoteRequest,
    identity: IdentityDep,
    service: ServiceDep,
) -> QuoteRecord:
    """Submit a new quote owned by the caller.

    Text is trimmed and may be up to 500 characters; a blank author is
    stored as "Unknown".
    """
    return await service.create_quote(identity, body.quote_text, body.author_name)


@router.get("/quotes", response_model=QuoteListResponse)
async def list_quotes(service: ServiceDep) -> QuoteListResponse:
    """Gallery: every quote, newest first."""
    quotes = await service.list_quotes()
    return QuoteListResponse(quotes=quotes, count=len(quotes))


@router.get("/quotes/mine", response_model=QuoteListResponse)
async def list_my_quotes(identity: IdentityDep, service: ServiceDep) -> QuoteListResponse:
    """Quotes submitted by the caller, newest first."""
    quotes = await service.list_user_quotes(identity)
    return QuoteListResponse(quotes=quotes, count=len(quotes))


@router.get("/quotes/{quote_id}", response_model=QuoteRecord)
async def get_quote(quote_id: str, service: ServiceDep) -> QuoteRecord:
    """Single quote by id (public)."""
    return await service.get_quote(quote_id)


@router.get("/quotes/{quote_id}/card", response_class=HTMLResponse)
async def get_quote_card(quote_id: str, service: ServiceDep) -> HTMLResponse:
    """Quote rendered as an HTML fragment, user text escaped."""
    quote = await service.get_quote(quote_id)
    return HTMLResponse(render_quote_card(quote.quote_text, quote.author_name, quote.created_at))


@router.delete("/quotes/{quote_id}", response_model=DeleteQuoteResponse)
async def delete_quote(
    quote_id: str,
    identity: IdentityDep,
    service: ServiceDep,
) -> DeleteQuoteResponse:
    """Delete one of the caller's quotes (404 if missing or not theirs)."""
    await service.delete_quote(identity, quote_id)
    return DeleteQuoteResponse(message="Quote deleted successfully", quote_id=quote_id)


@router.api_route(
    "/functions/update-quote",
    methods=["POST", "PUT", "OPTIONS"],
    response_model=UpdateQuoteResponse,
    responses={
        400: {"description": "Malformed body, missing fields or text out of bounds"},
        401: {"description": "Missing or invalid bearer token"},
        404: {"description": "Quote not found or not owned by the caller"},
        405: {"description": "Method other than POST/PUT"},
        429: {"description": "Too many edits in the current window"},
    },
)
async def update_quote(request: Request, service: ServiceDep) -> Response:
    """Edit one of the caller's quotes.

    Accepts POST and PUT with ``{quote_id, quote_text, author_name?}``;
    the text is trimmed and must be 10-280 characters long.
    """
    result = await handle_update_quote(
        EndpointRequest(
            method=request.method,
            headers=dict(request.headers),
            body=await request.body(),
        ),
        service,
        allow_origin=settings.app.cors_allow_origin,
    )

    if result.body is None:
        return Response(status_code=result.status_code, headers=result.headers)
    return JSONResponse(
        status_code=result.status_code,
        content=result.body,
        headers=result.headers,
    )


# Every other verb reaches the same handler, which answers 405 with CORS headers
router.api_route(
    "/functions/update-quote",
    methods=["GET", "HEAD", "PATCH", "DELETE", "TRACE", "CONNECT"],
    include_in_schema=False,
)(update_quote)
