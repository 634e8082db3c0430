from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from quicknotes.core.config import settings

# Базовый класс для моделей
Base = declarative_base()

# Асинхронный движок локального хранилища
engine = create_async_engine(settings.storage_url, future=True)


def create_session_factory(bind: AsyncEngine) -> sessionmaker:
    """Фабрика сессий для заданного движка"""
    return sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


async def init_storage_schema(bind: AsyncEngine = engine) -> None:
    """Создание таблиц локального хранилища"""
    # Модели должны быть импортированы до create_all
    from quicknotes.infrastructure.database import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
