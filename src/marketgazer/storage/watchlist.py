"""Watchlist of stock symbols."""

from typing import List
from loguru import logger

from .kv_store import KeyValueStore, DEFAULT_OWNER, load_json_list, save_json_list

WATCHLIST_STORAGE_KEY = 'stockbro-watchlist'


class WatchlistRepository:
    """Unique list of symbols mirrored to the key/value store on every change."""

    def __init__(self, store: KeyValueStore, owner: str = DEFAULT_OWNER):
        self.store = store
        self.owner = owner
        self.is_loaded = False
        self._items: List[str] = []
        self.load()

    def load(self) -> List[str]:
        """Reload the watchlist from storage."""
        self._items = [s for s in load_json_list(self.store, WATCHLIST_STORAGE_KEY, self.owner) if isinstance(s, str)]
        self.is_loaded = True
        return self.items

    @property
    def items(self) -> List[str]:
        return list(self._items)

    def _save(self, items: List[str]):
        self._items = items
        save_json_list(self.store, WATCHLIST_STORAGE_KEY, items, self.owner)

    def contains(self, symbol: str) -> bool:
        return symbol.upper() in self._items

    def add(self, symbol: str) -> bool:
        """Add a symbol; returns False if it was already present."""
        symbol = symbol.upper()
        if symbol in self._items:
            return False
        self._save(self._items + [symbol])
        logger.info(f"{symbol} added to watchlist")
        return True

    def remove(self, symbol: str) -> bool:
        """Remove a symbol; returns False if it was not present."""
        symbol = symbol.upper()
        if symbol not in self._items:
            return False
        self._save([s for s in self._items if s != symbol])
        logger.info(f"{symbol} removed from watchlist")
        return True
