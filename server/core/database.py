"""Async database service with SQLModel and SQLAlchemy 2.0."""

from pathlib import Path
from contextlib import asynccontextmanager

from sqlmodel import SQLModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from core.config import Settings
from core.logging import get_logger
# Imported so their tables are registered on SQLModel.metadata
from models.auth import User, UserSession  # noqa: F401
from models.content import Category, Brand  # noqa: F401

logger = get_logger(__name__)


class Database:
    """Async database service with SQLModel."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = None
        self.async_session = None

    def _engine_options(self) -> dict:
        options = {"echo": self.settings.database_echo, "future": True}
        if not self.settings.is_sqlite:
            options["pool_size"] = self.settings.database_pool_size
            options["max_overflow"] = self.settings.database_max_overflow
        return options

    def _ensure_sqlite_directory(self) -> None:
        """Ensure database directory exists for SQLite."""
        url = self.settings.database_url
        if self.settings.is_sqlite and ":///" in url:
            db_path = url.split("///", 1)[1]
            if db_path and db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def startup(self):
        """Initialize database connection and create tables."""
        try:
            self._ensure_sqlite_directory()
            self.engine = create_async_engine(self.settings.database_url, **self._engine_options())

            self.async_session = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)

            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error("Database startup failed", error=str(e))
            raise

    async def shutdown(self):
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.async_session = None
            logger.info("Database connections closed")

    @asynccontextmanager
    async def get_session(self):
        """Get async database session."""
        if not self.async_session:
            raise RuntimeError("Database not initialized")

        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Check database connectivity."""
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed", error=str(e))
            return False
