from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncEngine

from quicknotes.core.db import create_session_factory, engine as default_engine, init_storage_schema
from quicknotes.infrastructure.database.models import StorageEntryModel
from quicknotes.infrastructure.database.session import get_session
from quicknotes.storage.base import KeyValueStorage


class SqlStorage(KeyValueStorage):
    """Хранилище ключ-значение в таблице local_storage"""

    def __init__(self, engine: AsyncEngine = default_engine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    async def init_schema(self) -> None:
        await init_storage_schema(self.engine)

    async def get(self, key: str) -> Optional[str]:
        async with get_session(self.session_factory) as session:
            result = await session.execute(
                select(StorageEntryModel.value).where(StorageEntryModel.key == key)
            )
            return result.scalar_one_or_none()

    async def set(self, key: str, value: str) -> None:
        async with get_session(self.session_factory) as session:
            await session.merge(StorageEntryModel(key=key, value=value))
            await session.commit()

    async def remove(self, key: str) -> None:
        async with get_session(self.session_factory) as session:
            await session.execute(delete(StorageEntryModel).where(StorageEntryModel.key == key))
            await session.commit()

    async def keys(self) -> List[str]:
        async with get_session(self.session_factory) as session:
            result = await session.execute(select(StorageEntryModel.key))
            return list(result.scalars().all())

    async def close(self) -> None:
        await self.engine.dispose()
