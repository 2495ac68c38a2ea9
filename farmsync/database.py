"""Async SQLAlchemy engine and session factory for the SQL remote transport."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from farmsync.config import get_settings

engine = create_async_engine(
    get_settings().database_url,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
