"""
Self-healing database connection.

A single connection is opened lazily on first use and shared by every
caller. A background task pings it periodically; once the connection is
found closed or unresponsive, callers block in ``get()`` until a new one
has been established.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .base import ConnectionError

logger = logging.getLogger(__name__)


class ResilientConnection:
    """
    Lazy singleton connection with health checking and blocking reconnect.

    ``connect`` is any coroutine factory returning an object with the asyncpg
    connection surface used here: ``is_closed()``, ``fetchval()`` and
    ``close()``.
    """

    def __init__(
        self,
        connect: Callable[[], Awaitable[Any]],
        name: str = "postgres",
        reconnect_delay: float = 5.0,
        health_check_interval: float = 30.0,
    ):
        self._connect = connect
        self.name = name
        self.reconnect_delay = reconnect_delay
        self.health_check_interval = health_check_interval

        self._conn: Optional[Any] = None
        self._lock = asyncio.Lock()
        self._closed = False
        self._health_task: Optional[asyncio.Task] = None
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def closed(self) -> bool:
        return self._closed

    def _is_usable(self) -> bool:
        return self._conn is not None and not self._conn.is_closed()

    async def get(self) -> Any:
        """
        Return the shared connection, (re)connecting if needed.

        Blocks while the backend is unreachable, retrying every
        ``reconnect_delay`` seconds.

        Raises:
            ConnectionError: If the connection has been closed
        """
        if self._closed:
            raise ConnectionError(f"{self.name} connection is closed")
        if self._is_usable():
            return self._conn

        async with self._lock:
            if not self._is_usable():
                await self._reconnect(lost=self._conn is not None)
        return self._conn

    async def _reconnect(self, lost: bool) -> None:
        await self._discard()

        while not self._closed:
            if lost:
                self.logger.warning(
                    f"Connection to {self.name} was lost. Waiting for {self.reconnect_delay}s..."
                )
                await asyncio.sleep(self.reconnect_delay)
                if self._closed:
                    break
                self.logger.info(f"Reconnecting to {self.name}...")
            else:
                self.logger.info(f"Connecting to {self.name}...")

            try:
                conn = await self._connect()
            except Exception as e:
                self.logger.error(f"Failed to connect to {self.name}: {e}")
                lost = True
                continue

            if self._closed:
                await conn.close()
                break

            self._conn = conn
            if self._is_usable():
                self.logger.info(f"Connection to {self.name} established")
                return
            lost = True

        raise ConnectionError(f"{self.name} connection closed while reconnecting")

    async def _discard(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            if not conn.is_closed():
                await conn.close()
        except Exception as e:
            self.logger.error(f"Error closing {self.name} connection: {e}")

    async def ping(self) -> bool:
        """Run ``SELECT 1`` on the current connection."""
        if not self._is_usable():
            return False
        try:
            return await self._conn.fetchval("SELECT 1") == 1
        except Exception as e:
            self.logger.warning(f"{self.name} health check failed: {e}")
            return False

    def start_health_check(self) -> None:
        """Start the background health check task if not already running."""
        if self._health_task is None or self._health_task.done():
            self._health_task = asyncio.create_task(self._health_loop())

    async def _health_loop(self) -> None:
        while not self._closed:
            await asyncio.sleep(self.health_check_interval)
            if self._closed:
                break
            if await self.ping():
                continue
            async with self._lock:
                if self._closed:
                    break
                try:
                    await self._reconnect(lost=True)
                except ConnectionError:
                    break

    async def close(self) -> None:
        """Stop the health check and close the connection."""
        if self._closed:
            return
        self._closed = True

        if self._health_task is not None:
            self._health_task.cancel()
            try:
                await self._health_task
            except asyncio.CancelledError:
                pass
            self._health_task = None

        await self._discard()
        self.logger.info(f"{self.name} connection closed")
