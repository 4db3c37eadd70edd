"""
Node client for contract calls and Swap log queries.

Wraps a synchronous ``web3.Web3`` HTTP provider; blocking RPCs run in the
default executor so the backfill workers can share one event loop.
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, Iterator, List, Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes
from web3 import Web3

from ..models import RawSwapEvent
from .abis import SWAP_DATA_TYPES
from .errors import (
    ChainClientError,
    ContractCallError,
    DialError,
    ErrorHandler,
    MalformedLogError,
    TransientChainError,
)

logger = logging.getLogger(__name__)


class ClientClosedError(TransientChainError):
    """Raised when a call is made on a client that has been closed."""
    pass


@dataclass
class BlockHeader:
    """The block fields the backfill needs."""

    number: int
    timestamp: int
    hash: str


class LogCursor:
    """
    Lazy iterator over the Swap events returned for one block window.

    Raw log entries are decoded one by one as the cursor is consumed. An
    entry that does not decode is logged, counted in ``skipped`` and left out.
    """

    def __init__(self, logs: List[Dict[str, Any]], from_block: int, to_block: int):
        self._logs = logs
        self.from_block = from_block
        self.to_block = to_block
        self.skipped = 0

    def __len__(self) -> int:
        return len(self._logs)

    def __iter__(self) -> Iterator[RawSwapEvent]:
        for log in self._logs:
            try:
                event = decode_swap_log(log)
            except MalformedLogError as e:
                self.skipped += 1
                logger.error(f"Skipping Swap log in [{self.from_block}, {self.to_block}]: {e}")
                continue
            yield event


def decode_swap_log(log: Dict[str, Any]) -> RawSwapEvent:
    """
    Decode a Uniswap V2 Swap log entry into a RawSwapEvent.

    Raises:
        MalformedLogError: If the entry is missing fields or its data is not
            four uint256 words
    """
    try:
        amount0_in, amount1_in, amount0_out, amount1_out = decode(
            SWAP_DATA_TYPES, bytes(HexBytes(log["data"]))
        )
        return RawSwapEvent(
            tx_hash=Web3.to_hex(HexBytes(log["transactionHash"])),
            block_number=int(log["blockNumber"]),
            log_index=int(log.get("logIndex", 0)),
            pool_address=Web3.to_checksum_address(log["address"]),
            amount0_in=amount0_in,
            amount1_in=amount1_in,
            amount0_out=amount0_out,
            amount1_out=amount1_out,
        )
    except (DecodingError, KeyError, TypeError, ValueError) as e:
        raise MalformedLogError(f"undecodable Swap log: {e!r}") from e


class ChainClient:
    """
    Read-only access to an EVM node.

    Exposes the two operations the backfill depends on: calling a view
    method on a contract and opening a log cursor over a block range.
    """

    def __init__(self, web3: Web3, chain: str = "ethereum"):
        self.web3 = web3
        self.chain = chain
        self.closed = False
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)

    @classmethod
    def dial(cls, rpc_url: str, chain: str = "ethereum", timeout: int = 60) -> "ChainClient":
        """
        Create a client for an HTTP endpoint and check it answers.

        Raises:
            DialError: If the endpoint cannot be reached
        """
        try:
            web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
            if not web3.is_connected():
                raise DialError(f"Node at {rpc_url} is not reachable")
        except DialError:
            raise
        except Exception as e:
            raise DialError(f"Failed to dial {rpc_url}: {e}") from e

        logger.info(f"Connected to {chain} node at {rpc_url}")
        return cls(web3, chain)

    def close(self) -> None:
        """Mark the client closed; subsequent calls fail with ClientClosedError."""
        if self.closed:
            return
        self.closed = True
        self.logger.info(f"Closed {self.chain} chain client")

    async def _run(self, fn: Callable[[], Any]) -> Any:
        if self.closed:
            raise ClientClosedError(f"{self.chain} chain client is closed")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    async def call_contract_method(
        self, address: str, abi: List[Dict[str, Any]], method: str, *args: Any
    ) -> Any:
        """
        Call a read-only contract method.

        Args:
            address: Contract address
            abi: ABI containing the method
            method: Method name
            *args: Method arguments

        Returns:
            The decoded return value

        Raises:
            ContractCallError: If the call fails
        """
        def _call():
            contract = self.web3.eth.contract(
                address=Web3.to_checksum_address(address), abi=abi
            )
            return getattr(contract.functions, method)(*args).call()

        try:
            return await self._run(_call)
        except ClientClosedError:
            raise
        except Exception as e:
            raise ContractCallError(
                f"{method}() on {address} failed: {e}", address=address, method=method
            ) from e

    async def get_latest_block(self) -> int:
        """Get the current head block number."""
        try:
            return await self._run(lambda: self.web3.eth.block_number)
        except ChainClientError:
            raise
        except Exception as e:
            raise TransientChainError(f"Failed to get current block: {e}") from e

    async def get_block(self, block_number: int) -> BlockHeader:
        """Get number, timestamp and hash of a block."""
        try:
            block = await self._run(partial(self.web3.eth.get_block, block_number))
        except ChainClientError:
            raise
        except Exception as e:
            raise TransientChainError(f"Failed to get block {block_number}: {e}") from e

        return BlockHeader(
            number=int(block["number"]),
            timestamp=int(block["timestamp"]),
            hash=Web3.to_hex(HexBytes(block["hash"])),
        )

    async def open_log_cursor(
        self, address: str, event_topic: str, from_block: int, to_block: int
    ) -> LogCursor:
        """
        Query the logs of one event emitted by ``address`` in ``[from_block, to_block]``.

        Raises:
            LogQueryTooLargeError: If the node rejects the range as too large
            TransientChainError: For any other failure
        """
        params = {
            "address": Web3.to_checksum_address(address),
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": [event_topic],
        }
        try:
            logs = await self._run(partial(self.web3.eth.get_logs, params))
        except ClientClosedError:
            raise
        except Exception as e:
            raise self.error_handler.to_log_query_error(
                e, f"get_logs {address} [{from_block}, {to_block}]"
            ) from e

        return LogCursor(list(logs), from_block, to_block)
