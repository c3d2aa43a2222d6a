"""
FinEase Backend — Transaction Route Handlers
==============================================

What:  The /my-transaction resource: list, get, create, update, delete.
Why:   Thin HTTP layer; ownership rules live in TransactionService.
How:   Each handler receives a RequestContext (verified caller + collection)
       and delegates. Write bodies are read only after the context has
       resolved, so a request without a valid token gets 401 whatever its
       body holds. Errors are raised, never caught here: the global
       exception handlers translate them into status codes once.

Route Inventory:
    GET    /my-transaction?email=   list the caller's records (newest first)
    GET    /my-transaction/{id}     one record, or null
    POST   /my-transaction          create, owner forced to the caller
    PUT    /my-transaction/{id}     field-level merge
    DELETE /my-transaction/{id}     remove (idempotent)
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from finease.dependencies import RequestContext, get_request_context, read_json_object
from finease.schemas.transaction import (
    DeleteSummary,
    ErrorResponse,
    InsertSummary,
    TransactionList,
    UpdateSummary,
)
from finease.services.transaction_service import transaction_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/my-transaction", tags=["Transactions"])

_ERRORS = {
    400: {"description": "Missing parameter or malformed id", "model": ErrorResponse},
    401: {"description": "Missing or invalid identity token", "model": ErrorResponse},
    403: {"description": "Record belongs to another user", "model": ErrorResponse},
    500: {"description": "Store or identity service failure", "model": ErrorResponse},
}

# Write bodies are read by hand, so the schema is declared for the docs
_OBJECT_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": {"type": "object"}}},
    }
}


@router.get(
    "",
    response_model=TransactionList,
    responses=_ERRORS,
    summary="List the caller's transactions",
    description="Returns every record whose email matches, sorted by date (most recent first).",
)
async def list_transactions(
    email: Optional[str] = Query(default=None, description="Owner email; must be the caller's"),
    ctx: RequestContext = Depends(get_request_context),
) -> TransactionList:
    return await transaction_service.list_transactions(ctx.collection, ctx.identity, email)


@router.get(
    "/{transaction_id}",
    response_model=Optional[Dict[str, Any]],
    responses=_ERRORS,
    summary="Get a single transaction",
    description="Returns the record, or null when no record has this id.",
)
async def get_transaction(
    transaction_id: str,
    ctx: RequestContext = Depends(get_request_context),
) -> Optional[Dict[str, Any]]:
    return await transaction_service.get_transaction(
        ctx.collection, ctx.identity, transaction_id
    )


@router.post(
    "",
    response_model=InsertSummary,
    responses=_ERRORS,
    summary="Create a transaction",
    openapi_extra=_OBJECT_BODY,
    description=(
        "Stores an arbitrary JSON object. The email field is always set to the "
        "authenticated caller's email."
    ),
)
async def create_transaction(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
) -> InsertSummary:
    payload = await read_json_object(request)
    return await transaction_service.create_transaction(ctx.collection, ctx.identity, payload)


@router.put(
    "/{transaction_id}",
    response_model=UpdateSummary,
    responses=_ERRORS,
    summary="Update a transaction",
    openapi_extra=_OBJECT_BODY,
    description="Supplied fields overwrite existing ones; email and _id cannot be changed.",
)
async def update_transaction(
    transaction_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
) -> UpdateSummary:
    patch = await read_json_object(request)
    return await transaction_service.update_transaction(
        ctx.collection, ctx.identity, transaction_id, patch
    )


@router.delete(
    "/{transaction_id}",
    response_model=DeleteSummary,
    responses=_ERRORS,
    summary="Delete a transaction",
    description="Deleting an id that does not exist succeeds with deletedCount 0.",
)
async def delete_transaction(
    transaction_id: str,
    ctx: RequestContext = Depends(get_request_context),
) -> DeleteSummary:
    return await transaction_service.delete_transaction(
        ctx.collection, ctx.identity, transaction_id
    )
