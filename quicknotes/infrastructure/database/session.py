from contextlib import asynccontextmanager

from sqlalchemy.orm import sessionmaker


@asynccontextmanager
async def get_session(session_factory: sessionmaker):
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
