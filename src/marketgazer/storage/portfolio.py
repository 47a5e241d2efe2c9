"""Portfolio positions kept in the key/value store."""

from dataclasses import dataclass, replace
from typing import Dict, Any, List, Optional
from loguru import logger

from marketgazer.errors import NotFoundError
from .kv_store import KeyValueStore, DEFAULT_OWNER, load_json_list, save_json_list

PORTFOLIO_STORAGE_KEY = 'stockbro-portfolio'


@dataclass
class PortfolioItem:
    """A held position."""
    symbol: str
    quantity: float
    purchase_price: float  # average cost per share

    def to_dict(self) -> Dict[str, Any]:
        return {
            'symbol': self.symbol,
            'quantity': self.quantity,
            'purchasePrice': self.purchase_price,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PortfolioItem":
        price = data.get('purchasePrice', data.get('purchase_price'))
        return cls(
            symbol=str(data['symbol']).upper(),
            quantity=float(data['quantity']),
            purchase_price=float(price),
        )


def merge_positions(existing: PortfolioItem, added: PortfolioItem) -> PortfolioItem:
    """Combine two buys of one symbol at their quantity-weighted average price."""
    total_quantity = existing.quantity + added.quantity
    total_cost = existing.quantity * existing.purchase_price + added.quantity * added.purchase_price
    if total_quantity == 0:
        return replace(existing, quantity=0)
    return replace(existing, quantity=total_quantity, purchase_price=total_cost / total_quantity)


class PortfolioRepository:
    """Positions keyed by symbol, mirrored to storage on every change."""

    def __init__(self, store: KeyValueStore, owner: str = DEFAULT_OWNER):
        self.store = store
        self.owner = owner
        self.is_loaded = False
        self._items: List[PortfolioItem] = []
        self.load()

    def load(self) -> List[PortfolioItem]:
        """Reload positions from storage."""
        items = []
        for record in load_json_list(self.store, PORTFOLIO_STORAGE_KEY, self.owner):
            try:
                items.append(PortfolioItem.from_dict(record))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Dropping malformed portfolio record {record!r}: {e}")
        self._items = items
        self.is_loaded = True
        return self.items

    @property
    def items(self) -> List[PortfolioItem]:
        return list(self._items)

    def _save(self, items: List[PortfolioItem]):
        self._items = items
        save_json_list(self.store, PORTFOLIO_STORAGE_KEY, [i.to_dict() for i in items], self.owner)

    def get(self, symbol: str) -> Optional[PortfolioItem]:
        symbol = symbol.upper()
        return next((i for i in self._items if i.symbol == symbol), None)

    def add(self, item: PortfolioItem) -> PortfolioItem:
        """Add shares, merging with an existing position of the same symbol.

        Returns:
            The stored position after the add
        """
        item = replace(item, symbol=item.symbol.upper())
        items = self.items
        for index, existing in enumerate(items):
            if existing.symbol == item.symbol:
                items[index] = merge_positions(existing, item)
                stored = items[index]
                break
        else:
            items.append(item)
            stored = item

        self._save(items)
        logger.info(f"{item.quantity} shares of {item.symbol} added to portfolio")
        return stored

    def update(self, symbol: str, quantity: float, purchase_price: float) -> PortfolioItem:
        """Overwrite quantity and average price of a held position.

        Raises:
            NotFoundError: If the symbol is not held
        """
        symbol = symbol.upper()
        if self.get(symbol) is None:
            raise NotFoundError(f"{symbol} is not in your portfolio.")

        updated = PortfolioItem(symbol, quantity, purchase_price)
        self._save([updated if i.symbol == symbol else i for i in self._items])
        logger.info(f"Holdings for {symbol} updated")
        return updated

    def remove(self, symbol: str) -> bool:
        """Remove a position; returns False if it was not held."""
        symbol = symbol.upper()
        remaining = [i for i in self._items if i.symbol != symbol]
        removed = len(remaining) != len(self._items)
        self._save(remaining)
        if removed:
            logger.info(f"{symbol} removed from portfolio")
        return removed
