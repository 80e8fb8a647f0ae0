"""
Durable Session Storage

Key-value persistence for the authenticated session, restored at startup.
"""

import asyncio
import json
import logging
from typing import Optional, Protocol

from sqlalchemy import Column, String, Text, delete, select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from fuelcoach.models.session import Session, User

logger = logging.getLogger(__name__)

Base = declarative_base()

USER_KEY = "user"
TOKEN_KEY = "token"


class KeyValue(Base):
    """One stored key."""

    __tablename__ = "kv_store"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)

    def __repr__(self):
        return f"<KeyValue {self.key}>"


class KeyValueStore(Protocol):
    """Durable key-value storage."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


def _get_async_url(url: str) -> str:
    """Convert sync database URL to async version."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return url


class SQLiteKeyValueStore:
    """KeyValueStore backed by SQLAlchemy's async engine."""

    def __init__(self, database_url: str):
        self.database_url = _get_async_url(database_url)
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    async def _get_sessionmaker(self) -> async_sessionmaker:
        """Create engine and table on first use."""
        if self._sessionmaker is None:
            self._engine = create_async_engine(self.database_url)
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)
        return self._sessionmaker

    async def get(self, key: str) -> Optional[str]:
        factory = await self._get_sessionmaker()
        async with factory() as db:
            result = await db.execute(select(KeyValue.value).where(KeyValue.key == key))
            return result.scalar_one_or_none()

    async def set(self, key: str, value: str) -> None:
        factory = await self._get_sessionmaker()
        async with factory() as db:
            await db.merge(KeyValue(key=key, value=value))
            await db.commit()

    async def remove(self, key: str) -> None:
        factory = await self._get_sessionmaker()
        async with factory() as db:
            await db.execute(delete(KeyValue).where(KeyValue.key == key))
            await db.commit()

    async def close(self):
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None


class MemoryKeyValueStore:
    """Process-local KeyValueStore."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)


class SessionStorage:
    """
    Persists the Session as two keys: the serialized user and the token.

    A session exists only when both keys are present and readable; partial
    or corrupt state loads as no session. Writes are serialized by a lock so
    a login and a logout never interleave.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._lock = asyncio.Lock()

    async def load(self) -> Optional[Session]:
        """
        Restore the stored session.

        Returns:
            Session, or None when nothing (or only part of it) is stored or
            the stored user cannot be decoded
        """
        async with self._lock:
            try:
                raw_user = await self.store.get(USER_KEY)
                token = await self.store.get(TOKEN_KEY)
            except Exception as e:
                logger.error(f"Error loading session: {e}")
                return None

        if not raw_user or not token:
            return None

        try:
            user = User.from_dict(json.loads(raw_user))
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Stored session is corrupt, ignoring: {e}")
            return None

        logger.info(f"Session restored for {user.username}")
        return Session(user=user, token=token)

    async def save(self, session: Session) -> None:
        async with self._lock:
            await self.store.set(USER_KEY, json.dumps(session.user.to_dict()))
            await self.store.set(TOKEN_KEY, session.token)
        logger.info(f"Session saved for {session.user.username}")

    async def clear(self) -> None:
        async with self._lock:
            await self.store.remove(USER_KEY)
            await self.store.remove(TOKEN_KEY)
        logger.info("Session cleared")
