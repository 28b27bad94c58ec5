"""
This module contains the database dependencies.
"""
import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from trialops.db.session import get_sessionmaker

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database session.
    """

    db = get_sessionmaker()()
    try:
        yield db
    except Exception:
        logger.error("Database operation failed, rolling back")
        await db.rollback()
        raise
    finally:
        try:
            await db.close()
        except Exception as e:
            logger.error("Failed to close DB session: %s", e)
