"""Async SQLAlchemy engine and session factory.

Routes rarely take the session directly; ``get_store`` in
``promptforge.dependencies`` wraps it in a ``PromptStore``.
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from promptforge.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite (local runs and tests) has no server-side pool to size.
    if url.startswith("sqlite"):
        return {"echo": False, "poolclass": NullPool}
    return {
        "echo": False,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
