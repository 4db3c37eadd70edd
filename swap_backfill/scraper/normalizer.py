"""
Swap normalization: raw pool amounts to decimal-scaled trades.
"""

import logging
from decimal import Context, Decimal
from typing import Iterable, Optional, Tuple

from ..core.storage.base import StorageError
from ..models import NormalizedTrade, RawSwapEvent, swap_trade, timestamp_to_datetime
from .errors import AmbiguousSwapError, NormalizationError, PairLookupError, UnknownPoolError

logger = logging.getLogger(__name__)

# 78 significant digits hold any uint256 exactly
_DECIMAL_CONTEXT = Context(prec=78)


def scale_amount(amount: int, decimals: int) -> float:
    """Divide a raw token amount by ``10**decimals`` before narrowing to float."""
    if amount == 0:
        return 0.0
    return float(_DECIMAL_CONTEXT.divide(Decimal(amount), Decimal(10) ** decimals))


def get_swap_data(amount0_in: float, amount0_out: float, amount1_in: float, amount1_out: float) -> Tuple[float, float]:
    """
    Derive ``(price, volume)`` from scaled amounts in pair order.

    Price is token1 per token0. Volume is the token0 amount, positive when
    token0 left the pool and negative when it was sold into it.

    Raises:
        AmbiguousSwapError: If token0 did not move, or moved both ways
    """
    if amount0_in == 0 and amount0_out == 0:
        raise AmbiguousSwapError("swap without base token flow")
    if amount0_in != 0 and amount0_out != 0:
        raise AmbiguousSwapError("base token flows in and out in the same swap")

    if amount0_in == 0:
        return amount1_in / amount0_out, amount0_out
    return amount1_out / amount0_in, -amount0_in


class SwapNormalizer:
    """Turns RawSwapEvents of registered pools into NormalizedTrades."""

    def __init__(self, registry, block_store, exchange: str, reverse_tokens: Iterable[str] = ()):
        self.registry = registry
        self.block_store = block_store
        self.exchange = exchange
        self.reverse_tokens = {a.lower() for a in reverse_tokens}

    def set_reverse_tokens(self, addresses: Iterable[str]) -> None:
        self.reverse_tokens = {a.lower() for a in addresses}

    async def normalize(self, event: RawSwapEvent) -> Optional[NormalizedTrade]:
        """
        Normalize one swap.

        Returns None for zero-price trades, which are logged and dropped.

        Raises:
            UnknownPoolError: If the pool cannot be resolved
            AmbiguousSwapError: If the swap direction cannot be determined
            NormalizationError: If the block timestamp cannot be resolved
        """
        pair = self.registry.get_cached_pair(event.pool_address)
        if pair is None:
            try:
                pair = await self.registry.resolve_pair_by_address(event.pool_address)
            except PairLookupError as e:
                raise UnknownPoolError(f"Unknown pool {event.pool_address}: {e}") from e

        amounts0 = (event.amount0_in, event.amount0_out)
        amounts1 = (event.amount1_in, event.amount1_out)
        if pair.flipped:
            # Raw amounts are in pool order
            amounts0, amounts1 = amounts1, amounts0

        amount0_in, amount0_out = (scale_amount(a, pair.token0.decimals) for a in amounts0)
        amount1_in, amount1_out = (scale_amount(a, pair.token1.decimals) for a in amounts1)

        price, volume = get_swap_data(amount0_in, amount0_out, amount1_in, amount1_out)

        try:
            block = await self.block_store.get_block_metadata(event.block_number)
        except StorageError as e:
            raise NormalizationError(f"No timestamp for block {event.block_number}: {e}") from e

        trade = NormalizedTrade(
            symbol=pair.token0.symbol,
            pair=pair.foreign_name,
            price=price,
            volume=volume,
            base_token=pair.token0,
            quote_token=pair.token1,
            time=timestamp_to_datetime(block.timestamp),
            foreign_trade_id=event.tx_hash,
            source=self.exchange,
            verified_pair=True,
            block_number=event.block_number,
        )

        if price == 0:
            logger.info(f"Got zero trade: {trade.pair} {trade.foreign_trade_id}")
            return None

        # Quote reverse tokens in the opposite direction
        if pair.token1.address.lower() in self.reverse_tokens:
            trade = swap_trade(trade)
        return trade
