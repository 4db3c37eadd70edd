"""
Token blacklist manager for filtering scam and spam pairs out of the backfill.

This module maintains a blacklist of token addresses and symbols by combining:
1. Entries from the configured environment lists
2. A JSON blacklist file maintained outside the backfill
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

ADDRESS = "address"
SYMBOL = "symbol"


@dataclass
class BlacklistEntry:
    """Blacklist entry with metadata."""

    value: str  # lowercase address or uppercase symbol
    kind: str  # "address" or "symbol"
    reason: str  # "scam", "spam", "manual", ...
    source: str  # "config" or "file"
    added_at: Optional[str] = None  # ISO timestamp
    notes: Optional[str] = None


def _normalize(value: str, kind: str) -> str:
    value = value.strip()
    return value.lower() if kind == ADDRESS else value.upper()


class TokenBlacklistManager:
    """
    Read-only view over blacklisted token addresses and symbols.

    Addresses are compared case-insensitively as lowercase hex, symbols
    case-insensitively as uppercase.
    """

    def __init__(
        self,
        blacklist_file: Optional[str] = None,
        addresses: Iterable[str] = (),
        symbols: Iterable[str] = (),
    ):
        """
        Initialize blacklist manager.

        Args:
            blacklist_file: Optional path to a blacklist JSON file
            addresses: Addresses blacklisted by configuration
            symbols: Symbols blacklisted by configuration
        """
        self.blacklist_file = Path(blacklist_file) if blacklist_file else None
        self.blacklist: Dict[str, BlacklistEntry] = self._load_blacklist()

        for address in addresses:
            self._add(BlacklistEntry(_normalize(address, ADDRESS), ADDRESS, "config", "config"))
        for symbol in symbols:
            self._add(BlacklistEntry(_normalize(symbol, SYMBOL), SYMBOL, "config", "config"))

    @classmethod
    def from_config(cls, scraper_config) -> "TokenBlacklistManager":
        """Build a manager from a ``ScraperConfig``."""
        return cls(
            blacklist_file=scraper_config.BLACKLIST_FILE or None,
            addresses=scraper_config.BLACKLISTED_ADDRESSES,
            symbols=scraper_config.BLACKLISTED_SYMBOLS,
        )

    @staticmethod
    def _key(kind: str, value: str) -> str:
        return f"{kind}:{value}"

    def _add(self, entry: BlacklistEntry) -> None:
        if entry.value:
            self.blacklist[self._key(entry.kind, entry.value)] = entry

    def _load_blacklist(self) -> Dict[str, BlacklistEntry]:
        """
        Load blacklist entries from disk.

        The file looks like ``{"blacklist": [{"value": ..., "kind": ...,
        "reason": ...}, ...]}``. Entries of an unknown kind or with missing
        fields are logged and skipped.
        """
        if self.blacklist_file is None or not self.blacklist_file.exists():
            return {}

        try:
            with open(self.blacklist_file, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load blacklist {self.blacklist_file}: {e}")
            return {}

        blacklist = {}
        for entry_data in data.get("blacklist", []):
            try:
                entry = BlacklistEntry(**{"source": "file", **entry_data})
            except TypeError as e:
                logger.warning(f"Skipping malformed blacklist entry {entry_data}: {e}")
                continue
            if entry.kind not in (ADDRESS, SYMBOL):
                logger.warning(f"Skipping blacklist entry of unknown kind {entry.kind!r}")
                continue
            entry.value = _normalize(entry.value, entry.kind)
            blacklist[self._key(entry.kind, entry.value)] = entry

        logger.info(f"Loaded {len(blacklist)} blacklist entries from {self.blacklist_file}")
        return blacklist

    def __len__(self) -> int:
        return len(self.blacklist)

    def is_address_blacklisted(self, address: str) -> bool:
        return self._key(ADDRESS, _normalize(address, ADDRESS)) in self.blacklist

    def is_symbol_blacklisted(self, symbol: str) -> bool:
        return self._key(SYMBOL, _normalize(symbol, SYMBOL)) in self.blacklist
