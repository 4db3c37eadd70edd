"""
Pair filtering and ordering rules applied before trades are emitted.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Set

from ..models import ZERO_ADDRESS, Pair
from ..utils.token_blacklist_manager import TokenBlacklistManager

logger = logging.getLogger(__name__)

MIN_SYMBOL_LENGTH = 2


def rejection_reason(pair: Pair, blacklist: Optional[TokenBlacklistManager] = None) -> Optional[str]:
    """
    Return why a pair must not be scraped, or None if it is healthy.

    Degenerate pairs have a symbol shorter than two characters or a zero
    token address; blacklisted pairs have a blacklisted symbol or address.
    """
    for token in (pair.token0, pair.token1):
        if len(token.symbol.strip()) < MIN_SYMBOL_LENGTH:
            return f"symbol {token.symbol!r} is too short"
        if token.address.lower() == ZERO_ADDRESS:
            return "zero token address"

    if blacklist is not None:
        for token in (pair.token0, pair.token1):
            if blacklist.is_symbol_blacklisted(token.symbol):
                return f"symbol {token.symbol} is blacklisted"
        for token in (pair.token0, pair.token1):
            if blacklist.is_address_blacklisted(token.address):
                return f"address {token.address} is blacklisted"

    return None


def pair_health_check(pair: Pair, blacklist: Optional[TokenBlacklistManager] = None) -> bool:
    return rejection_reason(pair, blacklist) is None


def canonicalize(pair: Pair, reference_tokens: Iterable[str]) -> Pair:
    """
    Move a reference token (e.g. WETH or a stablecoin) into the quote position.

    The pair is reordered only when token0 is a reference token and token1
    is not, so applying the function twice yields the same pair.
    """
    references = {a.lower() for a in reference_tokens}
    if not references:
        return pair

    token0_is_ref = pair.token0.address.lower() in references
    token1_is_ref = pair.token1.address.lower() in references
    if token0_is_ref and not token1_is_ref:
        return pair.reordered()
    return pair


def load_reverse_tokens(path: str) -> List[str]:
    """
    Read the reverse-quote token list from a JSON file.

    The file holds ``{"Tokens": [{"Address": "0x..."}, ...]}``; addresses
    are returned lowercase.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not valid JSON or lacks the expected keys
    """
    with open(Path(path), "r") as f:
        data = json.load(f)

    try:
        tokens = [entry["Address"].lower() for entry in data["Tokens"]]
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed reverse tokens file {path}: {e}") from e

    logger.info(f"Loaded {len(tokens)} reverse tokens from {path}")
    return tokens


def build_reverse_set(addresses: Iterable[str], path: Optional[str] = None) -> Set[str]:
    """
    Combine configured reverse-quote addresses with those in an optional file.

    A file that cannot be read is logged and ignored.
    """
    reverse = {a.lower() for a in addresses if a}
    if path:
        try:
            reverse.update(load_reverse_tokens(path))
        except (OSError, ValueError) as e:
            logger.error(f"Error getting tokens for which pairs should be reversed: {e}")
    return reverse
