"""
FinEase Backend — Request Context Dependencies
================================================

What:  FastAPI dependencies that authenticate the caller and attach the store.
Why:   Every /my-transaction route needs the same two things: a verified
       identity and the collection handle. Building them once per request into
       an explicit RequestContext keeps route handlers free of auth plumbing.
How:   get_request_context depends on get_current_identity (which runs first),
       then asks the gateway for the collection. A request without a valid
       token is therefore rejected with 401 even while the store is down.

Dependency Graph:
    get_request_context
    ├── get_current_identity
    │   ├── Authorization header
    │   └── get_identity_verifier   (overridden in tests)
    └── get_store_gateway           (overridden in tests)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, Header, Request
from pymongo.asynchronous.collection import AsyncCollection

from finease.database import RecordStoreGateway, get_store_gateway
from finease.exceptions import InvalidArgument, InvalidCredential, Unauthenticated
from finease.services.firebase_identity import firebase_verifier
from finease.services.identity_base import IdentityVerifier, VerifiedIdentity


@dataclass(frozen=True)
class RequestContext:
    """Everything a transaction handler needs about the current request."""

    identity: VerifiedIdentity
    collection: AsyncCollection


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an `Authorization: Bearer <token>` header value.

    Raises:
        Unauthenticated: header missing or blank
        InvalidCredential: header present but not a bearer credential
    """
    if authorization is None or not authorization.strip():
        raise Unauthenticated()

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise InvalidCredential(context={"reason": "malformed authorization header"})
    return token


async def get_identity_verifier() -> IdentityVerifier:
    return firebase_verifier


async def get_current_identity(
    authorization: Optional[str] = Header(default=None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedIdentity:
    token = extract_bearer_token(authorization)
    return await verifier.verify_token(token)


async def get_request_context(
    identity: VerifiedIdentity = Depends(get_current_identity),
    gateway: RecordStoreGateway = Depends(get_store_gateway),
) -> RequestContext:
    collection = await gateway.get_collection()
    return RequestContext(identity=identity, collection=collection)


async def read_json_object(request: Request) -> Dict[str, Any]:
    """
    Parse the request body as a JSON object.

    Called from the handler body, after get_request_context has resolved, so
    an unauthenticated request is answered with 401 whatever its body holds.

    Raises:
        InvalidArgument: body is not valid JSON, or is JSON but not an object
    """
    try:
        body = await request.json()
    except ValueError:
        raise InvalidArgument(message="Request body must be a JSON object", field="body")
    if not isinstance(body, dict):
        raise InvalidArgument(message="Request body must be a JSON object", field="body")
    return body
