"""Asynchronous key-value stores for persisted progress."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy.orm import Session, sessionmaker

from vocaman.models.base import SessionLocal
from vocaman.models.models import StoredValue

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """A store of text values under string keys."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get the value stored under a key, or None."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a value under a key, replacing any previous one."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key if present."""


class MemoryKeyValueStore(KeyValueStore):
    """Store that keeps values in a dict for the lifetime of the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqlKeyValueStore(KeyValueStore):
    """Store backed by the ``kv_store`` table.

    Each call opens a short-lived session in a worker thread so the event
    loop is never blocked by the database.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    def _get(self, key: str) -> Optional[str]:
        db: Session = self.session_factory()
        try:
            row = db.get(StoredValue, key)
            return row.value if row is not None else None
        finally:
            db.close()

    def _set(self, key: str, value: str) -> None:
        db: Session = self.session_factory()
        try:
            row = db.get(StoredValue, key)
            if row is None:
                db.add(StoredValue(key=key, value=value))
            else:
                row.value = value
            db.commit()
            logger.debug("Stored key %s", key)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _delete(self, key: str) -> None:
        db: Session = self.session_factory()
        try:
            row = db.get(StoredValue, key)
            if row is not None:
                db.delete(row)
                db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
