"""Key/value store holding the per-client JSON collections."""

import json
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import create_engine, Column, String, Text, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker, scoped_session
from loguru import logger

from marketgazer.config import config

Base = declarative_base()

DEFAULT_OWNER = 'local'


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueEntry(Base):
    """One stored value, addressed by owner and key."""
    __tablename__ = 'kv_entries'

    owner = Column(String(64), primary_key=True)
    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<KeyValueEntry {self.owner}:{self.key}>"


class KeyValueStore:
    """String key/value storage with the same surface as browser local storage.

    Writes replace the whole value; the last write wins.
    """

    def __init__(self, database_url: str = None):
        """Initialize database connection."""
        database_url = database_url or config.storage.database_url
        self.engine = create_engine(database_url)
        Base.metadata.create_all(self.engine)
        self.Session = scoped_session(sessionmaker(bind=self.engine))
        logger.debug(f"Key/value store initialized: {self.engine.url}")

    def get_item(self, key: str, owner: str = DEFAULT_OWNER) -> Optional[str]:
        """Get the raw value for a key, or None if unset."""
        session = self.Session()
        try:
            entry = session.get(KeyValueEntry, (owner, key))
            return entry.value if entry else None
        finally:
            session.close()

    def set_item(self, key: str, value: str, owner: str = DEFAULT_OWNER) -> None:
        """Store a raw value under a key."""
        session = self.Session()
        try:
            entry = session.get(KeyValueEntry, (owner, key))
            if entry is None:
                session.add(KeyValueEntry(owner=owner, key=key, value=value))
            else:
                entry.value = value
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def remove_item(self, key: str, owner: str = DEFAULT_OWNER) -> None:
        """Delete a key if present."""
        session = self.Session()
        try:
            session.query(KeyValueEntry).filter_by(owner=owner, key=key).delete()
            session.commit()
        finally:
            session.close()

    def keys(self, owner: str = DEFAULT_OWNER) -> List[str]:
        """List the keys stored for an owner."""
        session = self.Session()
        try:
            rows = session.query(KeyValueEntry.key).filter_by(owner=owner).order_by(KeyValueEntry.key).all()
            return [row.key for row in rows]
        finally:
            session.close()

    def close(self):
        """Dispose of sessions and the engine."""
        self.Session.remove()
        self.engine.dispose()


def load_json_list(store: KeyValueStore, key: str, owner: str = DEFAULT_OWNER) -> list:
    """Load a JSON array, resetting to an empty list on missing or corrupt data."""
    raw = store.get_item(key, owner)
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse {key} for {owner}, resetting: {e}")
        return []
    if not isinstance(data, list):
        logger.warning(f"Stored {key} for {owner} is not a list, resetting")
        return []
    return data


def save_json_list(store: KeyValueStore, key: str, items: list, owner: str = DEFAULT_OWNER) -> None:
    """Serialize a list as JSON under a key."""
    store.set_item(key, json.dumps(items), owner)
