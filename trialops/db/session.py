"""
This module contains the database session.
"""
import logging
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from trialops.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_engine() -> AsyncEngine:
    """
    Create the async engine on first use.
    """
    settings = get_settings()
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is not configured")

    logger.info("Creating database engine")
    return create_async_engine(
        settings.database_url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=1800,
        connect_args={
            "command_timeout": 60,
            "server_settings": {
                "statement_timeout": "60000",  # 60 seconds
                "idle_in_transaction_session_timeout": "60000"
            }
        }
    )


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
