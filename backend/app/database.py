# backend/app/database.py
import logging
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.async_context import get_async_context
from app.core.exceptions import StoreFailure

logger = logging.getLogger(__name__)

# The async engine and session factory live in the async context, never at
# module level, so worker processes don't inherit pooled connections.

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency to get an async database session from the async context.
    """
    async_context = get_async_context()
    session_factory = async_context.session_factory

    async with session_factory() as session:
        yield session


async def commit_or_raise(db: AsyncSession) -> None:
    """
    Commits the session, turning persistence errors into StoreFailure.
    The session is rolled back so it stays usable for the caller.
    """
    try:
        await db.commit()
    except SQLAlchemyError as e:
        logger.error("Database commit failed: %s", e)
        await db.rollback()
        raise StoreFailure("The idea store is temporarily unavailable.") from e


async def execute_or_raise(db: AsyncSession, statement):
    """
    Runs a statement, turning persistence errors into StoreFailure the same
    way `commit_or_raise` does.
    """
    try:
        return await db.execute(statement)
    except SQLAlchemyError as e:
        logger.error("Database query failed: %s", e)
        await db.rollback()
        raise StoreFailure("The idea store is temporarily unavailable.") from e
