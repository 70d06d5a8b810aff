# storehours/db/session.py
"""Async engine, session factory and declarative base for the store hours tables."""
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from storehours.core.config import settings

engine = create_async_engine(settings.async_db_uri, pool_pre_ping=True)

# Status responses read merchant rows after commit
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


# BIGINT ids on Postgres; SQLite only autoincrements INTEGER PRIMARY KEY
BigIntId = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


async def get_session() -> AsyncSession:
    """Request-scoped session for route dependencies."""
    async with AsyncSessionLocal() as session:
        yield session
