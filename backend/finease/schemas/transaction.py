"""
FinEase Backend — Pydantic Request/Response Schemas
=====================================================

What:  The API contract for transaction routes: write summaries, error and
       health payloads, plus the helper that makes stored documents JSON-safe.
Why:   Transaction records are opaque documents, so only the envelopes around
       them are modelled. Summary field names are camelCase because existing
       clients read `insertedId`, `modifiedCount` and `deletedCount`.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ══════════════════════════════════════════════════════════════════════════
# Document Serialization
# ══════════════════════════════════════════════════════════════════════════


def serialize_value(value: Any) -> Any:
    """Recursively replaces ObjectId values with their 24-character hex string."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    return value


def serialize_document(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Convert a stored document into a JSON-ready dict.

    `_id` becomes a hex string; datetimes are left for FastAPI's encoder,
    which renders them as ISO 8601.
    """
    if document is None:
        return None
    return serialize_value(document)


# ══════════════════════════════════════════════════════════════════════════
# Write Summaries
# ══════════════════════════════════════════════════════════════════════════


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InsertSummary(_CamelModel):
    """Returned by POST /my-transaction."""

    acknowledged: bool = Field(description="Whether the write was acknowledged by the server")
    inserted_id: str = Field(description="Store-generated id of the new record")


class UpdateSummary(_CamelModel):
    """
    Returned by PUT /my-transaction/{id}.

    matched_count is 0 when no record with that id exists; modified_count is
    0 when the patch left the record unchanged. Upserts are never performed.
    """

    acknowledged: bool
    matched_count: int = Field(ge=0)
    modified_count: int = Field(ge=0)
    upserted_id: Optional[str] = None
    upserted_count: int = Field(default=0, ge=0)


class DeleteSummary(_CamelModel):
    """Returned by DELETE /my-transaction/{id}; deleted_count 0 means nothing matched."""

    acknowledged: bool
    deleted_count: int = Field(ge=0)


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for every failed request.

    Example:
        {"error": "forbidden", "message": "Forbidden", "request_id": "1f2e3d4c"}
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Client-safe context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for uptime monitors and platform probes."""

    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Store connectivity: connected, disconnected")
    identity: str = Field(description="Identity provider: configured, unconfigured")
    uptime_seconds: float = Field(description="Seconds since service started")
    checked_at: datetime = Field(description="When this report was produced (UTC)")


TransactionList = List[Dict[str, Any]]
