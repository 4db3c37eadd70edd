"""
Pair and token metadata resolution for Uniswap V2 style factories.

Pairs are read from the factory by index or by token pair, or looked up by
pool address, then cached for the lifetime of the process. Tokens are cached
by address.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from eth_utils import to_checksum_address

from ..chain.abis import ERC20_ABI, ERC20_BYTES32_ABI, FACTORY_ABI, PAIR_ABI
from ..chain.errors import ChainClientError
from ..models import ZERO_ADDRESS, Pair, Token
from .errors import PairLookupError
from .filters import canonicalize

logger = logging.getLogger(__name__)


def _decode_bytes32(value) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).rstrip(b"\x00").decode("utf-8", errors="ignore")
    return str(value)


class PairRegistry:
    """
    Resolves and caches pairs of one exchange factory.

    Pairs are keyed by pool address (lowercase) for swap normalization and
    by display name for worker lookup.
    """

    def __init__(
        self,
        chain_client,
        factory_address: str,
        exchange: str,
        discovery_concurrency: int = 16,
        reference_tokens: Iterable[str] = (),
    ):
        self.chain_client = chain_client
        self.factory_address = to_checksum_address(factory_address)
        self.exchange = exchange
        self.discovery_concurrency = discovery_concurrency
        self.reference_tokens = [a.lower() for a in reference_tokens]

        self._tokens: Dict[str, Token] = {}
        self._pairs_by_address: Dict[str, Pair] = {}
        self._pairs_by_name: Dict[str, Pair] = {}
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def get_num_pairs(self) -> int:
        """Read the factory's pair count."""
        try:
            count = await self.chain_client.call_contract_method(
                self.factory_address, FACTORY_ABI, "allPairsLength"
            )
        except ChainClientError as e:
            raise PairLookupError(f"Failed to read pair count of {self.factory_address}: {e}") from e
        return int(count)

    async def resolve_pair_by_index(self, index: int) -> Pair:
        """
        Resolve the pair stored at ``index`` in the factory.

        Raises:
            PairLookupError: If the factory or any token read fails
        """
        try:
            address = await self.chain_client.call_contract_method(
                self.factory_address, FACTORY_ABI, "allPairs", index
            )
        except ChainClientError as e:
            raise PairLookupError(f"Failed to read pair #{index}: {e}", index=index) from e

        return await self.resolve_pair_by_address(address)

    async def find_pair(self, token_a: str, token_b: str) -> Pair:
        """
        Resolve the pool the factory holds for two tokens, in either order.

        Raises:
            PairLookupError: If the factory has no pool for the tokens
        """
        token_a, token_b = to_checksum_address(token_a), to_checksum_address(token_b)
        try:
            address = await self.chain_client.call_contract_method(
                self.factory_address, FACTORY_ABI, "getPair", token_a, token_b
            )
        except ChainClientError as e:
            raise PairLookupError(f"Failed to look up pool of {token_a}/{token_b}: {e}") from e

        if not address or address.lower() == ZERO_ADDRESS:
            raise PairLookupError(f"No {self.exchange} pool for {token_a}/{token_b}")
        return await self.resolve_pair_by_address(address)

    async def resolve_pair_by_address(self, address: str) -> Pair:
        """
        Resolve a pool's tokens and their metadata.

        Raises:
            PairLookupError: If any pool or token read fails
        """
        cached = self.get_cached_pair(address)
        if cached is not None:
            return cached

        try:
            token0_address = await self.chain_client.call_contract_method(address, PAIR_ABI, "token0")
            token1_address = await self.chain_client.call_contract_method(address, PAIR_ABI, "token1")
        except ChainClientError as e:
            raise PairLookupError(f"Failed to read tokens of pool {address}: {e}", address=address) from e

        token0 = await self.resolve_token(token0_address)
        token1 = await self.resolve_token(token1_address)

        pair = canonicalize(
            Pair(address=to_checksum_address(address), token0=token0, token1=token1),
            self.reference_tokens,
        )
        self._pairs_by_address[pair.address.lower()] = pair
        self._pairs_by_name[pair.foreign_name] = pair
        return pair

    async def resolve_token(self, address: str) -> Token:
        """
        Read symbol, name and decimals of an ERC20 token.

        Raises:
            PairLookupError: If decimals cannot be read or symbol/name fail
                under both the string and the bytes32 ABI
        """
        key = address.lower()
        if key in self._tokens:
            return self._tokens[key]

        symbol = await self._read_text(address, "symbol")
        name = await self._read_text(address, "name")
        try:
            decimals = await self.chain_client.call_contract_method(address, ERC20_ABI, "decimals")
        except ChainClientError as e:
            raise PairLookupError(f"Failed to read decimals of {address}: {e}", address=address) from e

        token = Token(
            address=to_checksum_address(address),
            symbol=symbol,
            name=name,
            decimals=int(decimals),
        )
        self._tokens[key] = token
        return token

    async def _read_text(self, address: str, method: str) -> str:
        try:
            return await self.chain_client.call_contract_method(address, ERC20_ABI, method)
        except ChainClientError:
            pass

        # Legacy tokens (MKR, SAI) return bytes32
        try:
            value = await self.chain_client.call_contract_method(address, ERC20_BYTES32_ABI, method)
        except ChainClientError as e:
            raise PairLookupError(f"Failed to read {method} of {address}: {e}", address=address) from e
        return _decode_bytes32(value)

    def get_cached_pair(self, address: str) -> Optional[Pair]:
        return self._pairs_by_address.get(address.lower())

    def get_pair_by_name(self, foreign_name: str) -> Optional[Pair]:
        return self._pairs_by_name.get(foreign_name)

    async def list_all_pairs(self) -> List[Pair]:
        """
        Resolve every pair of the factory with bounded concurrency.

        Pairs that fail to resolve are logged and left out; the result keeps
        factory index order.
        """
        num_pairs = await self.get_num_pairs()
        self.logger.info(f"Resolving {num_pairs} {self.exchange} pairs")
        semaphore = asyncio.Semaphore(self.discovery_concurrency)

        async def resolve(index: int) -> Optional[Pair]:
            async with semaphore:
                try:
                    return await self.resolve_pair_by_index(index)
                except PairLookupError as e:
                    self.logger.error(f"Error retrieving pair #{index}: {e}")
                    return None

        results = await asyncio.gather(*(resolve(i) for i in range(num_pairs)))
        pairs = [p for p in results if p is not None]
        self.logger.info(f"Resolved {len(pairs)}/{num_pairs} {self.exchange} pairs")
        return pairs
