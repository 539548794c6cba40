from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config import settings


def async_database_url(url: str) -> str:
    """Rewrite a plain postgres URL to use the asyncpg driver"""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


class DatabaseManager:
    """Lazily builds the async engine so the memory backend never needs a driver"""

    def __init__(self, url: str):
        self.url = async_database_url(url)
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    def init_engine(self) -> async_sessionmaker:
        if self.session_factory is None:
            self.engine = create_async_engine(
                self.url,
                echo=settings.DATABASE_ECHO,
                future=True,
            )
            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self.session_factory

    async def close(self):
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None


db_manager = DatabaseManager(settings.DATABASE_URL)


async def init_db():
    """Initialize database tables"""
    from models.base import Base

    db_manager.init_engine()
    async with db_manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Close database connections"""
    await db_manager.close()
