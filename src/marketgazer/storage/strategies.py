"""Free-text strategy notes."""

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from loguru import logger

from marketgazer.errors import NotFoundError
from .kv_store import KeyValueStore, DEFAULT_OWNER, load_json_list, save_json_list

STRATEGIES_STORAGE_KEY = 'stockbro-strategies'


@dataclass
class Strategy:
    """A saved trading strategy note."""
    id: str
    title: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Strategy":
        return cls(id=str(data['id']), title=str(data.get('title', '')), description=str(data.get('description', '')))


def new_strategy_id() -> str:
    """Timestamp id in the same ISO format browsers produce."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class StrategyRepository:
    """Strategy notes mirrored to storage on every change."""

    def __init__(self, store: KeyValueStore, owner: str = DEFAULT_OWNER):
        self.store = store
        self.owner = owner
        self.is_loaded = False
        self._items: List[Strategy] = []
        self.load()

    def load(self) -> List[Strategy]:
        """Reload strategies from storage."""
        items = []
        for record in load_json_list(self.store, STRATEGIES_STORAGE_KEY, self.owner):
            try:
                items.append(Strategy.from_dict(record))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Dropping malformed strategy record {record!r}: {e}")
        self._items = items
        self.is_loaded = True
        return self.items

    @property
    def items(self) -> List[Strategy]:
        return list(self._items)

    def _save(self, items: List[Strategy]):
        self._items = items
        save_json_list(self.store, STRATEGIES_STORAGE_KEY, [s.to_dict() for s in items], self.owner)

    def get(self, strategy_id: str) -> Optional[Strategy]:
        return next((s for s in self._items if s.id == strategy_id), None)

    def add(self, title: str, description: str) -> Strategy:
        """Save a new strategy with a creation-time id."""
        strategy = Strategy(id=new_strategy_id(), title=title, description=description)
        self._save(self._items + [strategy])
        logger.info(f"Strategy \"{strategy.title}\" saved")
        return strategy

    def update(self, strategy: Strategy) -> Strategy:
        """Replace the strategy with the same id.

        Raises:
            NotFoundError: If no strategy has that id
        """
        if self.get(strategy.id) is None:
            raise NotFoundError(f"Strategy {strategy.id} not found.")
        self._save([strategy if s.id == strategy.id else s for s in self._items])
        logger.info(f"Strategy \"{strategy.title}\" updated")
        return strategy

    def remove(self, strategy_id: str) -> bool:
        """Delete a strategy; returns False if the id was unknown."""
        remaining = [s for s in self._items if s.id != strategy_id]
        removed = len(remaining) != len(self._items)
        self._save(remaining)
        if removed:
            logger.info(f"Strategy {strategy_id} removed")
        return removed
