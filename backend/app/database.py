"""
Database connection using SQLAlchemy's async engine.

Why SQLAlchemy instead of a hosted database client?
- The transcript store is one table with a JSON column, plain SQL covers it
- PostgreSQL (asyncpg) in production, SQLite (aiosqlite) for local runs and tests
- The append statement needs dialect-specific SQL (JSONB concatenation on
  Postgres), which SQLAlchemy lets us express directly
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

# Load configuration (database URL) from environment variables
settings = get_settings()

# Connection pool
# - Reuses connections instead of opening a new one per query
# - echo logs all SQL statements when DATABASE_ECHO=true
engine = create_async_engine(settings.database_url, echo=settings.database_echo)

# Factory that creates database sessions
#
# The transcript store opens one short-lived session per create/append/get,
# because a debate session outlives any single HTTP request.
#
# expire_on_commit=False keeps objects usable after commit (needed for async)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass

