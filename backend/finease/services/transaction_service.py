"""
FinEase Backend — Transaction Service (Ownership-scoped CRUD)
===============================================================

What:  The five operations behind /my-transaction: list, get, create, update, delete.
Why:   Keeps ownership rules and identifier validation out of the route handlers,
       so they can be tested against a fake collection without HTTP.
How:   Every method receives the collection handle and the caller's verified
       identity. Driver exceptions are translated into application exceptions.

Ownership Rules:
    - A record's `email` field names its only reader/writer.
    - create:  `email` is forced to the caller's email, whatever the payload says.
    - list:    the requested email must be the caller's own.
    - get / update / delete: a record owned by someone else → Forbidden.
    - update:  `email` and `_id` can never be patched.
    Writes filter on both `_id` and `email`, so a record can only ever be
    modified by its owner even if ownership changed between check and write.

Identifier Validation:
    Ids must be 24 hexadecimal characters. Malformed ids are rejected with
    InvalidArgument before the store is touched.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import ConnectionFailure, PyMongoError

from finease.exceptions import DatabaseError, Forbidden, InvalidArgument, StoreUnavailable
from finease.schemas.transaction import (
    DeleteSummary,
    InsertSummary,
    UpdateSummary,
    serialize_document,
)
from finease.services.identity_base import VerifiedIdentity

logger = logging.getLogger(__name__)

OWNER_FIELD = "email"
SORT_FIELD = "date"

# Fields a client may never set through update
PROTECTED_FIELDS = frozenset({"_id", OWNER_FIELD})

_OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


def parse_object_id(value: str) -> ObjectId:
    """
    Parse a path identifier into an ObjectId.

    bson's ObjectId.is_valid also accepts any 12-byte string; only the hex
    form is a valid identifier on the wire.
    """
    if not isinstance(value, str) or not _OBJECT_ID_PATTERN.match(value):
        raise InvalidArgument(message="Invalid ID", field="id")
    return ObjectId(value)


def check_field_names(fields: Dict[str, Any]) -> None:
    """
    Reject top-level keys the store would refuse or treat as operators.

    A key may not be empty, start with '$', or contain an empty dotted segment.
    """
    for key in fields:
        if not key or key.startswith("$") or "" in key.split("."):
            raise InvalidArgument(message=f"Invalid field name: {key!r}", field="body")


def _store_error(error: PyMongoError, operation: str) -> Exception:
    """Map a driver exception to StoreUnavailable or DatabaseError."""
    context = {"operation": operation, "error_type": type(error).__name__}
    if isinstance(error, ConnectionFailure) or error.timeout:
        logger.error("Store unavailable during %s: %s", operation, str(error))
        return StoreUnavailable(context=context)
    logger.error("Store error during %s: %s", operation, str(error))
    return DatabaseError(context=context)


class TransactionService:
    """
    Business logic for transaction records.

    Stateless: all state lives in MongoDB, so a single module-level instance
    is shared by every request.
    """

    async def list_transactions(
        self,
        collection: AsyncCollection,
        identity: VerifiedIdentity,
        owner_email: Optional[str],
    ) -> List[Dict[str, Any]]:
        """
        All records owned by `owner_email`, most recent `date` first.

        Raises:
            InvalidArgument: owner_email missing or blank
            Forbidden: owner_email is not the caller's email
        """
        if not owner_email or not owner_email.strip():
            raise InvalidArgument(message="Email required", field="email")
        if owner_email != identity.email:
            logger.warning(
                "uid=%s attempted to list transactions of another user", identity.uid
            )
            raise Forbidden(context={"uid": identity.uid})

        try:
            cursor = collection.find({OWNER_FIELD: owner_email}).sort(SORT_FIELD, DESCENDING)
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise _store_error(e, "list") from e

        logger.debug("Listed %d transactions for uid=%s", len(documents), identity.uid)
        return [serialize_document(doc) for doc in documents]

    async def get_transaction(
        self,
        collection: AsyncCollection,
        identity: VerifiedIdentity,
        transaction_id: str,
    ) -> Optional[Dict[str, Any]]:
        """
        One record by id, or None when no record has that id.

        Raises:
            InvalidArgument: malformed id
            Forbidden: the record belongs to someone else
        """
        object_id = parse_object_id(transaction_id)
        try:
            document = await collection.find_one({"_id": object_id})
        except PyMongoError as e:
            raise _store_error(e, "get") from e

        if document is None:
            return None
        self._ensure_owner(document, identity, transaction_id)
        return serialize_document(document)

    async def create_transaction(
        self,
        collection: AsyncCollection,
        identity: VerifiedIdentity,
        payload: Dict[str, Any],
    ) -> InsertSummary:
        """
        Store `payload` as a new record owned by the caller.

        The payload is copied, never mutated. A client-supplied `_id` is
        dropped so identifiers are always generated by the store.
        """
        check_field_names(payload)
        document = {key: value for key, value in payload.items() if key != "_id"}
        document[OWNER_FIELD] = identity.email

        try:
            result = await collection.insert_one(document)
        except PyMongoError as e:
            raise _store_error(e, "create") from e

        logger.info("Created transaction %s for uid=%s", result.inserted_id, identity.uid)
        return InsertSummary(
            acknowledged=result.acknowledged,
            inserted_id=str(result.inserted_id),
        )

    async def update_transaction(
        self,
        collection: AsyncCollection,
        identity: VerifiedIdentity,
        transaction_id: str,
        patch: Dict[str, Any],
    ) -> UpdateSummary:
        """
        Merge `patch` into the record: supplied fields overwrite, others are untouched.

        Raises:
            InvalidArgument: malformed id, an invalid field name, or nothing
                             left to set once protected fields are removed
            Forbidden: the record belongs to someone else
        """
        object_id = parse_object_id(transaction_id)
        changes = {key: value for key, value in patch.items() if key not in PROTECTED_FIELDS}
        check_field_names(changes)
        if len(changes) != len(patch):
            logger.debug(
                "Ignoring protected fields in update of %s: %s",
                transaction_id,
                sorted(PROTECTED_FIELDS.intersection(patch)),
            )
        if not changes:
            raise InvalidArgument(message="Update must contain at least one field", field="body")

        try:
            existing = await collection.find_one({"_id": object_id}, {OWNER_FIELD: 1})
            if existing is None:
                return UpdateSummary(acknowledged=True, matched_count=0, modified_count=0)
            self._ensure_owner(existing, identity, transaction_id)

            result = await collection.update_one(
                {"_id": object_id, OWNER_FIELD: identity.email},
                {"$set": changes},
            )
        except PyMongoError as e:
            raise _store_error(e, "update") from e

        logger.info(
            "Updated transaction %s (matched=%d, modified=%d)",
            transaction_id,
            result.matched_count,
            result.modified_count,
        )
        return UpdateSummary(
            acknowledged=result.acknowledged,
            matched_count=result.matched_count,
            modified_count=result.modified_count,
        )

    async def delete_transaction(
        self,
        collection: AsyncCollection,
        identity: VerifiedIdentity,
        transaction_id: str,
    ) -> DeleteSummary:
        """
        Remove the record. Deleting an id that does not exist reports deleted_count 0.

        Raises:
            InvalidArgument: malformed id
            Forbidden: the record belongs to someone else
        """
        object_id = parse_object_id(transaction_id)

        try:
            existing = await collection.find_one({"_id": object_id}, {OWNER_FIELD: 1})
            if existing is None:
                return DeleteSummary(acknowledged=True, deleted_count=0)
            self._ensure_owner(existing, identity, transaction_id)

            result = await collection.delete_one({"_id": object_id, OWNER_FIELD: identity.email})
        except PyMongoError as e:
            raise _store_error(e, "delete") from e

        logger.info("Deleted transaction %s (deleted=%d)", transaction_id, result.deleted_count)
        return DeleteSummary(acknowledged=result.acknowledged, deleted_count=result.deleted_count)

    @staticmethod
    def _ensure_owner(
        document: Dict[str, Any],
        identity: VerifiedIdentity,
        transaction_id: str,
    ) -> None:
        if document.get(OWNER_FIELD) != identity.email:
            logger.warning(
                "uid=%s denied access to transaction %s", identity.uid, transaction_id
            )
            raise Forbidden(context={"uid": identity.uid, "transaction_id": transaction_id})


# ── Singleton Instance ────────────────────────────────────────────────────
transaction_service = TransactionService()
