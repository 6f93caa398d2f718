"""
Database engine and session management for SQLAlchemy 2.0.
Configured for async operations with PostgreSQL (asyncpg) or SQLite (aiosqlite).
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from urllib.parse import urlparse
import logging

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for the configured database.
    Pool settings only apply to PostgreSQL (not SQLite).
    """
    engine_args = {"echo": echo}

    if database_url.startswith("postgresql"):
        engine_args.update({
            "pool_size": 10,  # Number of connections to maintain in pool
            "max_overflow": 20,  # Additional connections allowed beyond pool_size
            "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
            "pool_recycle": 3600,  # Recycle connections after 1 hour
            "connect_args": {
                "server_settings": {
                    "application_name": "scrc-api"
                }
            }
        })

    return create_async_engine(database_url, **engine_args)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    try:
        parsed = urlparse(url)
    except Exception as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"

    if url.startswith("sqlite"):
        return True, f"SQLite database: {parsed.path or ':memory:'}"

    if not url.startswith(("postgresql://", "postgresql+asyncpg://")):
        return False, (
            "Invalid database URL scheme. Expected postgresql+asyncpg:// or "
            f"sqlite+aiosqlite://, got: {parsed.scheme}"
        )

    if not parsed.hostname:
        return False, "No hostname found in DATABASE_URL"

    return True, (
        f"Hostname: {parsed.hostname}, Port: {parsed.port or 5432}, "
        f"Database: {parsed.path or '/postgres'}"
    )


async def init_db(engine: AsyncEngine, database_url: str):
    """
    Verify the database connection and create missing tables.
    Called from the application startup event.
    """
    is_valid, diagnostic = _validate_database_url(database_url)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    # Import models so they are registered on Base.metadata
    from scrc_api import models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database connection initialized successfully")
    except Exception as e:
        error_msg = str(e)
        if "connection refused" in error_msg.lower() or "timeout" in error_msg.lower():
            logger.error(
                f"Database connection failed - Connection refused/timeout: {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        elif "authentication failed" in error_msg.lower() or "password" in error_msg.lower():
            logger.error(
                f"Database connection failed - Authentication error: {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        else:
            logger.error(
                f"Database connection failed ({type(e).__name__}): {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        raise


async def close_db(engine: AsyncEngine):
    """
    Close database connections.
    Used by the shutdown event.
    """
    await engine.dispose()
    logger.info("Database connections closed")
