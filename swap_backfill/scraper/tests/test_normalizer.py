"""Tests for swap normalization."""
import logging
from datetime import datetime, timezone

import pytest

from ...core.storage.base import DataError
from ...models import NormalizedTrade, Token, swap_trade
from ..errors import AmbiguousSwapError, NormalizationError, UnknownPoolError
from ..normalizer import SwapNormalizer, get_swap_data, scale_amount
from ..pair_registry import PairRegistry
from .conftest import BASE_TIMESTAMP, FACTORY, POOL_WETH_USDC, USDC, WETH


class TestScaling:
    """Test decimal scaling of raw amounts."""

    def test_examples(self):
        assert scale_amount(1_000000000000000000, 18) == 1.0
        assert scale_amount(2_500000, 6) == 2.5
        assert scale_amount(0, 18) == 0.0

    def test_uint256_max_does_not_overflow(self):
        assert scale_amount(2 ** 256 - 1, 18) == pytest.approx(1.157920892373162e59)

    def test_zero_decimals(self):
        assert scale_amount(42, 0) == 42.0


class TestGetSwapData:
    """Test the price/volume formula."""

    def test_base_sold_into_pool(self):
        price, volume = get_swap_data(amount0_in=1.0, amount0_out=0, amount1_in=0, amount1_out=2.5)
        assert price == 2.5
        assert volume == -1.0

    def test_base_bought_from_pool(self):
        price, volume = get_swap_data(amount0_in=0, amount0_out=2.0, amount1_in=5.0, amount1_out=0)
        assert price == 2.5
        assert volume == 2.0

    def test_no_base_flow_is_ambiguous(self):
        with pytest.raises(AmbiguousSwapError):
            get_swap_data(0, 0, 1.0, 1.0)

    def test_two_way_base_flow_is_ambiguous(self):
        with pytest.raises(AmbiguousSwapError):
            get_swap_data(1.0, 1.0, 0, 2.0)


class TestSwapTrade:
    """Test re-quoting a trade in the opposite direction."""

    @pytest.mark.asyncio
    async def test_swap_trade_inverts(self, chain_client, block_store):
        registry = PairRegistry(chain_client, FACTORY, "UniswapV2")
        await registry.resolve_pair_by_address(POOL_WETH_USDC)
        normalizer = SwapNormalizer(registry, block_store, "UniswapV2")
        event = chain_client.add_swap(POOL_WETH_USDC, 100, amount0_in=10 ** 18, amount1_out=2_000000)
        trade = await normalizer.normalize(event)

        swapped = swap_trade(trade)

        assert swapped.price == 0.5
        assert swapped.volume == 2.0
        assert swapped.base_token == trade.quote_token
        assert swapped.quote_token == trade.base_token
        assert swapped.pair == "USDC-WETH"
        assert swapped.symbol == "USDC"

    def test_zero_price_cannot_be_swapped(self):
        token = Token(WETH, "WETH", "Wrapped Ether", 18)
        trade = NormalizedTrade(
            symbol="WETH", pair="WETH-USDC", price=0.0, volume=1.0,
            base_token=token, quote_token=token,
            time=datetime.now(timezone.utc), foreign_trade_id="0x1", source="UniswapV2",
        )
        with pytest.raises(ValueError):
            swap_trade(trade)


class TestSwapNormalizer:
    """Test SwapNormalizer with the in-memory chain and block store."""

    @pytest.fixture
    def registry(self, chain_client):
        return PairRegistry(chain_client, FACTORY, "UniswapV2")

    @pytest.fixture
    def normalizer(self, registry, block_store):
        return SwapNormalizer(registry, block_store, "UniswapV2")

    @pytest.mark.asyncio
    async def test_normalize_sell(self, normalizer, chain_client):
        event = chain_client.add_swap(POOL_WETH_USDC, 100, amount0_in=1_000000000000000000, amount1_out=2_500000)

        trade = await normalizer.normalize(event)

        assert trade.price == 2.5
        assert trade.volume == -1.0
        assert trade.symbol == "WETH"
        assert trade.pair == "WETH-USDC"
        assert trade.base_token.address == WETH
        assert trade.quote_token.address == USDC
        assert trade.time == datetime.fromtimestamp(BASE_TIMESTAMP + 100, tz=timezone.utc)
        assert trade.foreign_trade_id == event.tx_hash
        assert trade.source == "UniswapV2"
        assert trade.verified_pair
        assert trade.block_number == 100

    @pytest.mark.asyncio
    async def test_normalize_resolves_unknown_pool_once(self, normalizer, registry, chain_client):
        event = chain_client.add_swap(POOL_WETH_USDC, 100, amount0_out=10 ** 18, amount1_in=3_000000)

        assert registry.get_cached_pair(POOL_WETH_USDC) is None
        trade = await normalizer.normalize(event)

        assert trade.price == 3.0
        assert trade.volume == 1.0
        assert registry.get_cached_pair(POOL_WETH_USDC) is not None

    @pytest.mark.asyncio
    async def test_unknown_pool(self, normalizer, chain_client):
        event = chain_client.add_swap("0x3333333333333333333333333333333333333333", 100, amount0_in=1, amount1_out=1)

        with pytest.raises(UnknownPoolError):
            await normalizer.normalize(event)

    @pytest.mark.asyncio
    async def test_reverse_rule(self, normalizer, chain_client):
        event = chain_client.add_swap(POOL_WETH_USDC, 100, amount0_in=10 ** 18, amount1_out=2_500000)
        plain = await normalizer.normalize(event)

        normalizer.set_reverse_tokens([USDC.lower()])
        reversed_trade = await normalizer.normalize(event)

        assert reversed_trade.base_token == plain.quote_token
        assert reversed_trade.quote_token == plain.base_token
        assert reversed_trade.price == pytest.approx(1 / plain.price)
        assert reversed_trade.volume == pytest.approx(2.5)
        assert reversed_trade.pair == "USDC-WETH"

    @pytest.mark.asyncio
    async def test_zero_price_is_dropped(self, normalizer, chain_client):
        # Dust: output rounds to nothing
        event = chain_client.add_swap(POOL_WETH_USDC, 100, amount0_in=10 ** 18, amount1_out=0)

        assert await normalizer.normalize(event) is None

    @pytest.mark.asyncio
    async def test_zero_price_with_reverse_token_is_dropped(self, normalizer, chain_client, caplog):
        normalizer.set_reverse_tokens([USDC])
        event = chain_client.add_swap(POOL_WETH_USDC, 100, amount0_in=10 ** 18, amount1_out=0)

        with caplog.at_level(logging.INFO, logger="swap_backfill.scraper.normalizer"):
            assert await normalizer.normalize(event) is None

        assert "Got zero trade" in caplog.text
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    @pytest.mark.asyncio
    async def test_ambiguous_event(self, normalizer, chain_client):
        event = chain_client.add_swap(POOL_WETH_USDC, 100, amount1_in=5, amount1_out=5)

        with pytest.raises(AmbiguousSwapError):
            await normalizer.normalize(event)

    @pytest.mark.asyncio
    async def test_block_lookup_failure(self, normalizer, chain_client, block_store):
        async def failing_lookup(block_number):
            raise DataError("no such block")

        block_store.get_block_metadata = failing_lookup
        event = chain_client.add_swap(POOL_WETH_USDC, 100, amount0_in=10 ** 18, amount1_out=2_500000)

        with pytest.raises(NormalizationError):
            await normalizer.normalize(event)

    @pytest.mark.asyncio
    async def test_flipped_pair_maps_pool_amounts(self, chain_client, block_store):
        registry = PairRegistry(chain_client, FACTORY, "UniswapV2", reference_tokens=[WETH])
        normalizer = SwapNormalizer(registry, block_store, "UniswapV2")
        # Pool order WETH/USDC: 1 WETH in, 2500 USDC out
        event = chain_client.add_swap(POOL_WETH_USDC, 100, amount0_in=10 ** 18, amount1_out=2500_000000)

        trade = await normalizer.normalize(event)

        assert trade.pair == "USDC-WETH"
        assert trade.volume == 2500.0
        assert trade.price == pytest.approx(1 / 2500)
