"""Database abstraction layer using SQLAlchemy 2.0 async.

This module provides the database session management and engine configuration
for SQLAlchemy with async support. It supports both SQLite (aiosqlite) and
PostgreSQL (asyncpg) drivers.

Sessions produced here are ``TenantScopedSession`` instances carrying the
application's ``TenantGuard`` in ``session.info``, so every ORM statement and
flush is checked against the bound request context.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncGenerator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from rentbase.core.config import Settings
from rentbase.core.logging import get_logger

if TYPE_CHECKING:
    from rentbase.infrastructure.persistence.tenant_guard import TenantGuard

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    All models should inherit from this class to get proper ORM mapping
    and metadata management.
    """

    pass


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on foreign key enforcement for every SQLite connection.

    Cascading deletes and RESTRICT references rely on it.

    Args:
        engine: Async engine connected to SQLite.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class DatabaseManager:
    """Database connection and session manager.

    This class manages the async database engine and session factory.
    One instance is built by the application factory and kept on
    ``app.state.db``.

    Args:
        settings: Application settings.
        engine: Pre-built engine, e.g. an in-memory database in tests.
        tenant_guard: Guard attached to every session created here.
    """

    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine | None = None,
        tenant_guard: "TenantGuard | None" = None,
    ) -> None:
        self.settings = settings
        self.tenant_guard = tenant_guard
        self._engine = engine
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the database engine.

        Returns:
            AsyncEngine: SQLAlchemy async engine instance.
        """
        if self._engine is None:
            options: dict[str, Any] = {"echo": self.settings.db_echo}
            if self.settings.uses_sqlite:
                options["connect_args"] = {"check_same_thread": False}
            else:
                options.update(
                    pool_size=self.settings.db_pool_size,
                    max_overflow=self.settings.db_max_overflow,
                    pool_timeout=self.settings.db_pool_timeout,
                    pool_recycle=self.settings.db_pool_recycle,
                )
            self._engine = create_async_engine(self.settings.database_url, **options)
            if self.settings.uses_sqlite:
                enable_sqlite_foreign_keys(self._engine)

            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the session factory.

        Returns:
            async_sessionmaker: SQLAlchemy async session factory.
        """
        if self._session_factory is None:
            from rentbase.infrastructure.persistence.tenant_guard import (
                TenantScopedSession,
                guard_session_info,
                register_tenant_guard_listeners,
            )

            if self.tenant_guard is not None:
                register_tenant_guard_listeners(TenantScopedSession)

            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                sync_session_class=TenantScopedSession,
                expire_on_commit=False,
                autoflush=False,
                info=guard_session_info(self.tenant_guard),
            )
            logger.debug("Database session factory created")
        return self._session_factory

    async def create_tables(self) -> None:
        """Create all database tables.

        Used in development and tests. In production, use migrations instead.
        """
        from rentbase.infrastructure.persistence import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop all database tables.

        WARNING: This will delete all data. Only use in testing!
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            logger.warning("Database tables dropped")

    async def disconnect(self) -> None:
        """Close the database engine and all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope for database operations.

        Yields:
            AsyncSession: SQLAlchemy async session.

        Example:
            async with db.session() as session:
                result = await session.execute(select(TenantModel))
                tenants = result.scalars().all()
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """Check if database connection is working.

        Returns:
            bool: True if connection is successful, False otherwise.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error("Database connection check failed", error=str(e))
            return False

    async def initialize(self) -> None:
        """Prepare the database on application startup.

        Creates the SQLite directory if needed, checks connectivity and, in
        development, creates the tables. Production relies on migrations.

        Raises:
            RuntimeError: If the database is unreachable.
        """
        if self.settings.uses_sqlite and ":memory:" not in self.settings.database_url:
            db_path = Path(self.settings.database_url.split(":///")[-1])
            db_path.parent.mkdir(parents=True, exist_ok=True)

        if not await self.check_connection():
            raise RuntimeError("Failed to connect to database")

        if self.settings.is_development:
            logger.info("Development mode: Creating database tables")
            await self.create_tables()
        else:
            logger.info("Skipping auto-create, use migrations")


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for FastAPI to get database session.

    Reads the ``DatabaseManager`` built by the application factory from
    ``app.state``.

    Yields:
        AsyncSession: SQLAlchemy async session.
    """
    db: DatabaseManager = request.app.state.db
    async with db.session() as session:
        yield session
