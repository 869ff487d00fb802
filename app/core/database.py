"""
Database Configuration

Async SQLAlchemy 2.0 setup. PostgreSQL (asyncpg) in production,
SQLite (aiosqlite) for local development and tests.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional, Sequence, Type

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    All models should inherit from this class.
    """
    pass


def generate_id() -> str:
    """Primary keys are opaque strings so they line up with identity-provider user ids."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Module-level engine instance (lazily initialized)
_engine: Optional[AsyncEngine] = None
_async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """
    Get or create the async engine.

    Lazy initialization to avoid import-time database connection issues.
    SSL is only configured when DATABASE_SSL is enabled.
    """
    global _engine
    if _engine is None:
        from app.core.config import settings

        db_url = settings.DATABASE_URL
        engine_kwargs: Dict[str, Any] = {"echo": False}

        if settings.is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            # asyncpg doesn't accept sslmode/channel_binding params in URL
            if "?" in db_url:
                db_url = db_url.split("?")[0]
            engine_kwargs.update(
                pool_pre_ping=True,
                pool_size=5,
                max_overflow=10,
            )
            if settings.DATABASE_SSL:
                import ssl

                ssl_context = ssl.create_default_context()
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_NONE
                engine_kwargs["connect_args"] = {"ssl": ssl_context}

        _engine = create_async_engine(db_url, **engine_kwargs)
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get or create the session maker."""
    global _async_session_maker
    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
    return _async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    The session is committed when the request handler returns and rolled
    back if it raises, so every request is one unit of work.

    Yields:
        AsyncSession: An async database session.
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def insert_if_absent(
    db: AsyncSession,
    model: Type[Base],
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
) -> Optional[Any]:
    """
    Atomically insert a row unless one already violates the unique key.

    Emits ``INSERT ... ON CONFLICT (...) DO NOTHING RETURNING id`` using the
    dialect of the session's bind, so two concurrent callers can never both
    create a row for the same key.

    Args:
        db: Database session.
        model: Mapped class to insert into.
        values: Column values. Python-side column defaults fill the rest.
        conflict_columns: Columns of the unique constraint.

    Returns:
        The new primary key, or None when the row already existed.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    else:
        raise NotImplementedError(f"Conditional insert is not supported on {dialect}")

    stmt = (
        dialect_insert(model)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(conflict_columns))
        .returning(model.id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def init_db() -> None:
    """
    Initialize database tables.

    Note: In production, use Alembic migrations instead.
    This is useful for testing or initial development.
    """
    # Register every model on Base.metadata
    import app.models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    global _engine, _async_session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
