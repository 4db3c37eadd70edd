import asyncio
import logging
from typing import Any, Dict, Optional

import nats
from nats.aio.client import Client as NATS

from .json_helpers import dumps

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_NATS_URLS = {
    "local": "nats://localhost:4222",
    "dev": "nats://nats:4222",
    "production": "nats://nats-server:4222",
}


def _get_nats_url(env: str) -> str:
    """Get NATS URL for the specified environment"""
    return DEFAULT_NATS_URLS.get(env, DEFAULT_NATS_URLS["local"])


class NatsClient:
    """
    A simple NATS client for JSON-encoded messages.
    Methods starting with 'a' execute asynchronously.
    """

    def __init__(self, env: str = "local", connection_params: Optional[Dict[str, Any]] = None):
        self.connection_params = dict(connection_params or {"servers": [_get_nats_url(env)]})
        self.url = self.connection_params["servers"][0]
        self.nc: Optional[NATS] = None

    @classmethod
    def from_config(cls, nats_config) -> "NatsClient":
        return cls(connection_params=nats_config.connection_params)

    @property
    def connected(self) -> bool:
        return self.nc is not None and self.nc.is_connected

    async def aconnect(self):
        """Asynchronously connect to NATS server"""
        logger.info(f"Connecting to NATS at {self.url}")
        self.nc = await asyncio.wait_for(nats.connect(**self.connection_params), timeout=DEFAULT_TIMEOUT)
        logger.info(f"Connected to NATS at {self.url}")

    async def aclose(self):
        """Asynchronously drain and close the connection"""
        if self.nc:
            await self.nc.drain()
            self.nc = None

    async def apublish(self, subject: str, msg: Any):
        """Asynchronously publish a message to a subject"""
        if not self.nc:
            raise ConnectionError("Not connected to NATS server")
        await self.nc.publish(subject, dumps(msg).encode())

    async def aflush(self, timeout: float = DEFAULT_TIMEOUT):
        """Wait until published messages have reached the server"""
        if self.nc:
            await self.nc.flush(timeout=timeout)
