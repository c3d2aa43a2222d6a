"""
FinEase Backend — Record Store Gateway
========================================

What:  Owns the process-wide MongoDB client and hands out the transactions
       collection to request handlers.
Why:   Serverless hosts start many short-lived processes; connecting lazily and
       caching the client means one connection pool per process, never one per
       request, and no cold-start penalty for routes that never touch the store.
How:   RecordStoreGateway creates an AsyncMongoClient on first use, pings the
       server once, then caches the client and collection handle. Creation is
       single-flight (asyncio.Lock), so concurrent first requests share one client.
Who:   Used by finease.dependencies (per request), the health route and the
       application lifespan (warm-up and shutdown).

Failure Policy:
    - A failed connection attempt is never cached: the half-built client is
      closed and StoreUnavailable is raised. The next request tries again.
    - No retries inside a request. Only the optional startup warm-up retries,
      with tenacity exponential backoff.
    - Every driver operation is bounded by the client-side timeout (timeoutMS).
"""

import asyncio
import logging
from typing import Optional

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from finease.config import Settings, settings
from finease.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


class RecordStoreGateway:
    """
    Lazily connected, cached handle to one collection in one database.

    State:
        _client / _collection are None until the first successful connect,
        then set exactly once and only read afterwards.
    """

    def __init__(
        self,
        uri: str,
        database: str,
        collection: str,
        timeout_ms: int = 10_000,
    ):
        self._uri = uri
        self._database_name = database
        self._collection_name = collection
        self._timeout_ms = timeout_ms
        self._client: Optional[AsyncMongoClient] = None
        self._collection: Optional[AsyncCollection] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, config: Settings) -> "RecordStoreGateway":
        return cls(
            uri=config.mongo_connection_uri,
            database=config.mongo_database,
            collection=config.mongo_collection,
            timeout_ms=config.store_timeout_ms,
        )

    @property
    def is_connected(self) -> bool:
        return self._collection is not None

    async def get_collection(self) -> AsyncCollection:
        """
        Return the cached collection handle, connecting first if needed.

        Raises:
            StoreUnavailable: The server could not be reached within the timeout.
        """
        if self._collection is not None:
            return self._collection

        async with self._lock:
            # Another coroutine may have connected while we waited for the lock
            if self._collection is None:
                await self._connect()
        return self._collection

    async def _connect(self) -> None:
        client: Optional[AsyncMongoClient] = None
        try:
            # Stable API v1 in strict mode: the server rejects commands outside the API
            client = AsyncMongoClient(
                self._uri,
                server_api=ServerApi("1", strict=True, deprecation_errors=True),
                timeoutMS=self._timeout_ms,
                appname="finease-backend",
            )
            await client.admin.command("ping")
        except PyMongoError as e:
            logger.error("MongoDB connection error: %s", str(e))
            if client is not None:
                await client.close()
            raise StoreUnavailable(
                context={"database": self._database_name, "error_type": type(e).__name__},
            ) from e

        self._client = client
        self._collection = client[self._database_name][self._collection_name]
        logger.info(
            "Connected to MongoDB database=%s collection=%s",
            self._database_name,
            self._collection_name,
        )

    async def warm_up(
        self,
        attempts: int = 3,
        min_wait: int = 1,
        max_wait: int = 8,
    ) -> bool:
        """
        Connect eagerly at startup, retrying with exponential backoff.

        Returns False (instead of raising) when every attempt fails, so the
        process still starts and falls back to connecting on first use.
        """
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(StoreUnavailable),
                stop=stop_after_attempt(attempts),
                wait=wait_exponential_jitter(initial=min_wait, max=max_wait, jitter=1),
                before_sleep=before_sleep_log(logger, logging.WARNING),
            ):
                with attempt:
                    await self.get_collection()
        except RetryError:
            logger.warning(
                "MongoDB warm-up failed after %d attempts; will connect on first request",
                attempts,
            )
            return False
        return True

    async def ping(self) -> bool:
        """Lightweight reachability probe for the health route."""
        try:
            await self.get_collection()
            await self._client.admin.command("ping")
        except (StoreUnavailable, PyMongoError) as e:
            logger.warning("Health check: MongoDB unreachable: %s", str(e))
            return False
        return True

    async def close(self) -> None:
        """
        Close the cached client. Called during application shutdown.

        The gateway can reconnect afterwards; closing only clears the cache.
        """
        async with self._lock:
            client, self._client, self._collection = self._client, None, None
        if client is not None:
            await client.close()
            logger.info("MongoDB client closed")


# Process-wide gateway; the client inside it is created on first use
store_gateway = RecordStoreGateway.from_settings(settings)


async def get_store_gateway() -> RecordStoreGateway:
    """FastAPI dependency returning the process-wide gateway (overridable in tests)."""
    return store_gateway
