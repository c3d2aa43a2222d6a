"""
FinEase Backend — Greeting & Health Check Routes
==================================================

What:  GET / (plain-text greeting) and GET /health (dependency report).
Why:   The greeting is what uptime pings and the hosting platform hit; /health
       is for monitors that need to know whether MongoDB is actually reachable.
How:   Neither route requires authentication. /health pings the store through
       the gateway (connecting if needed) and checks the identity verifier is
       configured. It never verifies a token.

Status levels:
    healthy:   Store reachable (HTTP 200)
    unhealthy: Store unreachable (HTTP 503)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse

from finease import __version__
from finease.database import RecordStoreGateway, get_store_gateway
from finease.dependencies import get_identity_verifier
from finease.schemas.transaction import HealthResponse
from finease.services.identity_base import IdentityVerifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()

GREETING = "Hello FinEase Server"


@router.get("/", response_class=PlainTextResponse, summary="Greeting")
async def root() -> str:
    return GREETING


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    gateway: RecordStoreGateway = Depends(get_store_gateway),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> HealthResponse:
    db_ok = await gateway.ping()
    identity_ok = await verifier.health_check()

    if not db_ok:
        response.status_code = 503
    if not identity_ok:
        logger.warning("Health check: identity verifier is not configured")

    return HealthResponse(
        status="healthy" if db_ok else "unhealthy",
        version=__version__,
        database="connected" if db_ok else "disconnected",
        identity="configured" if identity_ok else "unconfigured",
        uptime_seconds=round(time.time() - _start_time, 2),
        checked_at=datetime.now(timezone.utc),
    )
