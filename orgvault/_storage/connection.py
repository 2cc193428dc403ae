"""Lifecycle of the connection to the persistence engine.

The first connection attempt happens in ``connect()``. When it fails, a
background task keeps retrying with a fixed backoff until a ping
succeeds or ``close()`` is called. Nothing in the retry path raises into
the host application, so routes that do not touch persistence (health
checks) keep serving while storage is down.
"""

import asyncio
import logging
from contextlib import suppress
from typing import Any, Callable, Optional

import redis.asyncio as aioredis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import AsyncRetrying, RetryCallState, before_sleep_log, wait_fixed

from ..errors import ConfigurationError, StorageConnectionError
from .._utils import logger


class StorageConnection:
    """Owns the Redis client and its reconnect loop."""

    def __init__(
        self,
        uri: Optional[str],
        password: Optional[str] = None,
        retry_interval: float = 5.0,
        connection_timeout: float = 5.0,
        socket_timeout: float = 5.0,
        max_connections: int = 50,
        client_factory: Optional[Callable[[str], Any]] = None,
    ):
        self.uri = uri.strip() if isinstance(uri, str) else uri
        self.password = password
        self.retry_interval = retry_interval
        self.connection_timeout = connection_timeout
        self.socket_timeout = socket_timeout
        self.max_connections = max_connections
        self._client_factory = client_factory or self._create_client

        self._client: Optional[Any] = None
        self._pool: Optional[Any] = None
        self._connected = False
        self._shutdown = asyncio.Event()
        self._reconnect_task: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_reconnecting(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    @property
    def client(self) -> Any:
        if self._client is None:
            raise StorageConnectionError("Storage connection has not been initialized")
        return self._client

    def _create_client(self, uri: str) -> Any:
        retry = Retry(
            ExponentialBackoff(cap=10, base=1),
            retries=3,
            supported_errors=(RedisConnectionError, RedisTimeoutError, ConnectionError),
        )
        self._pool = aioredis.ConnectionPool.from_url(
            uri,
            password=self.password,
            max_connections=self.max_connections,
            socket_timeout=self.socket_timeout,
            socket_connect_timeout=self.connection_timeout,
            decode_responses=True,
            retry=retry,
        )
        return aioredis.Redis(connection_pool=self._pool)

    async def connect(self) -> bool:
        """Connect once, falling back to background retries.

        Returns:
            True if the first attempt succeeded, False if the retry loop took over

        Raises:
            ConfigurationError: if no connection string is configured
        """
        if not self.uri:
            raise ConfigurationError("Missing required storage connection string (REDIS_URL).")

        if self._connected:
            return True

        self._shutdown.clear()
        if self._client is None:
            self._client = self._client_factory(self.uri)

        try:
            await self._ping()
        except Exception as e:
            logger.error(f"Storage connection failed: {e}. Retrying every {self.retry_interval}s in background")
            self._start_reconnect_loop()
            return False

        self._connected = True
        logger.info("Connected to storage")
        return True

    async def _ping(self) -> None:
        result = await self.client.ping()
        if not result:
            raise StorageConnectionError("Storage did not answer ping")

    def _start_reconnect_loop(self) -> None:
        if self.is_reconnecting or self._shutdown.is_set():
            return
        self._reconnect_task = asyncio.create_task(self._reconnect_forever())

    def _stop_requested(self, retry_state: RetryCallState) -> bool:
        return self._shutdown.is_set()

    async def _reconnect_forever(self) -> None:
        # Back off before the first retry; the caller has just failed.
        with suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._shutdown.wait(), timeout=self.retry_interval)
        if self._shutdown.is_set():
            return

        retrying = AsyncRetrying(
            wait=wait_fixed(self.retry_interval),
            stop=self._stop_requested,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self._ping()
        except Exception as e:
            logger.info(f"Storage reconnect loop stopped: {e}")
            return

        self._connected = True
        logger.info("Reconnected to storage")

    async def check_health(self) -> bool:
        """Ping storage; on failure mark disconnected and resume retrying."""
        if self._client is None:
            return False

        try:
            await self._ping()
        except Exception as e:
            if self._connected:
                logger.warning(f"Storage disconnected: {e}")
            self._connected = False
            self._start_reconnect_loop()
            return False

        if not self._connected:
            logger.info("Storage connection restored")
            self._connected = True
        return True

    async def close(self) -> None:
        """Stop the reconnect loop and release the client."""
        self._shutdown.set()

        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._reconnect_task
            self._reconnect_task = None

        if self._client is not None:
            try:
                await self._client.aclose()
            except Exception as e:
                logger.warning(f"Error closing storage client: {e}")
            if self._pool is not None:
                await self._pool.disconnect()
            self._client = None
            self._pool = None

        self._connected = False
