"""Tests for pair filtering, canonical ordering and token lists."""
import json

import pytest

from ...models import ZERO_ADDRESS, Pair, Token
from ...utils.token_blacklist_manager import TokenBlacklistManager
from ..filters import (
    build_reverse_set,
    canonicalize,
    load_reverse_tokens,
    pair_health_check,
    rejection_reason,
)
from .conftest import MKR, POOL_WETH_USDC, USDC, WETH

WETH_TOKEN = Token(WETH, "WETH", "Wrapped Ether", 18)
USDC_TOKEN = Token(USDC, "USDC", "USD Coin", 6)
MKR_TOKEN = Token(MKR, "MKR", "Maker", 18)


def make_pair(token0=WETH_TOKEN, token1=USDC_TOKEN):
    return Pair(address=POOL_WETH_USDC, token0=token0, token1=token1)


class TestPairHealthCheck:
    """Test degenerate and blacklisted pair detection."""

    @pytest.fixture
    def blacklist(self):
        return TokenBlacklistManager(addresses=[MKR.lower()], symbols=["scam"])

    def test_healthy_pair(self, blacklist):
        assert pair_health_check(make_pair(), blacklist)
        assert rejection_reason(make_pair(), blacklist) is None

    def test_short_symbol(self, blacklist):
        pair = make_pair(token1=Token(USDC, "U", "U", 6))
        assert not pair_health_check(pair, blacklist)
        assert "too short" in rejection_reason(pair, blacklist)

    def test_empty_symbol(self):
        assert not pair_health_check(make_pair(token0=Token(WETH, "", "", 18)))

    def test_blacklisted_symbol_is_case_insensitive(self, blacklist):
        pair = make_pair(token0=Token(WETH, "Scam", "Scam", 18))
        assert not pair_health_check(pair, blacklist)

    def test_blacklisted_address(self, blacklist):
        assert not pair_health_check(make_pair(token0=MKR_TOKEN), blacklist)

    def test_zero_address(self):
        pair = make_pair(token1=Token(ZERO_ADDRESS, "NULL", "Null", 18))
        assert rejection_reason(pair) == "zero token address"

    def test_without_blacklist(self):
        assert pair_health_check(make_pair(token0=MKR_TOKEN))


class TestCanonicalize:
    """Test reference-token reordering."""

    def test_moves_reference_token_to_quote(self):
        pair = make_pair(token0=WETH_TOKEN, token1=MKR_TOKEN)

        canonical = canonicalize(pair, [WETH.lower()])

        assert canonical.token0 == MKR_TOKEN
        assert canonical.token1 == WETH_TOKEN
        assert canonical.flipped
        assert canonical.foreign_name == "MKR-WETH"

    def test_is_idempotent(self):
        pair = make_pair(token0=WETH_TOKEN, token1=MKR_TOKEN)
        once = canonicalize(pair, [WETH])
        assert canonicalize(once, [WETH]) == once

    def test_two_reference_tokens_keep_pool_order(self):
        pair = make_pair()
        assert canonicalize(pair, [WETH, USDC]) == pair

    def test_no_reference_tokens(self):
        pair = make_pair()
        assert canonicalize(pair, []) is pair


class TestReverseTokens:
    """Test loading the reverse-quote list."""

    def test_load_reverse_tokens(self, tmp_path):
        path = tmp_path / "reverse_tokens.json"
        path.write_text(json.dumps({"Tokens": [{"Address": WETH}, {"Address": USDC}]}))

        assert load_reverse_tokens(str(path)) == [WETH.lower(), USDC.lower()]

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "reverse_tokens.json"
        path.write_text(json.dumps({"tokens": []}))

        with pytest.raises(ValueError):
            load_reverse_tokens(str(path))

    def test_build_reverse_set_ignores_missing_file(self, tmp_path):
        reverse = build_reverse_set([USDC], str(tmp_path / "missing.json"))
        assert reverse == {USDC.lower()}

    def test_build_reverse_set_merges_file(self, tmp_path):
        path = tmp_path / "reverse_tokens.json"
        path.write_text(json.dumps({"Tokens": [{"Address": WETH}]}))

        assert build_reverse_set([USDC], str(path)) == {USDC.lower(), WETH.lower()}


class TestTokenBlacklistManager:
    """Test blacklist loading and lookups."""

    def test_file_and_config_entries(self, tmp_path):
        path = tmp_path / "blacklist.json"
        path.write_text(json.dumps({
            "blacklist": [
                {"value": MKR.upper().replace("0X", "0x"), "kind": "address", "reason": "rug_pull"},
                {"value": "fake", "kind": "symbol", "reason": "scam", "notes": "copycat"},
            ]
        }))

        manager = TokenBlacklistManager(blacklist_file=str(path), symbols=["spam"])

        assert len(manager) == 3
        assert manager.is_address_blacklisted(MKR)
        assert manager.is_symbol_blacklisted("FAKE")
        assert manager.is_symbol_blacklisted("Spam")
        assert not manager.is_address_blacklisted(WETH)

    def test_malformed_entries_are_skipped(self, tmp_path):
        path = tmp_path / "blacklist.json"
        path.write_text(json.dumps({
            "blacklist": [
                {"value": "SCAM", "kind": "pool", "reason": "scam"},
                {"value": "NOREASON", "kind": "symbol"},
                {"value": "RUG", "kind": "symbol", "reason": "scam"},
            ]
        }))

        manager = TokenBlacklistManager(blacklist_file=str(path))

        assert len(manager) == 1
        assert manager.is_symbol_blacklisted("RUG")

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "blacklist.json"
        path.write_text("{not json")

        assert len(TokenBlacklistManager(blacklist_file=str(path), addresses=[MKR])) == 1

    def test_missing_file(self, tmp_path):
        manager = TokenBlacklistManager(blacklist_file=str(tmp_path / "missing.json"))
        assert len(manager) == 0
