import asyncio
import logging
import uuid
from typing import Optional

from app.core.async_context import get_async_context, close_async_context
from app.core.celery_app import celery_app
from app.core.exceptions import AnalysisError, NotFound
from app.models.idea import Idea
from app.services import idea_service

logger = logging.getLogger(__name__)

def run_async_task(async_func, *args, **kwargs):
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(async_func(*args, **kwargs))
    finally:
        tasks = asyncio.all_tasks(loop=loop)
        for task in tasks: task.cancel()
        if tasks: loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
        loop.close()
        asyncio.set_event_loop(None)

async def _async_validate_idea(
    idea_id: uuid.UUID, owner_id: uuid.UUID, provider: Optional[str] = None
) -> Optional[Idea]:
    """
    Runs one validation pass outside the request cycle.
    The outcome is recorded on the idea itself (succeeded or failed), so an
    analysis failure ends the task quietly. It is never retried here.
    """
    session_factory = get_async_context().session_factory
    async with session_factory() as db:
        try:
            idea = await idea_service.revalidate_idea(db, owner_id, idea_id, provider)
        except NotFound:
            logger.info("Idea %s no longer exists; skipping validation", idea_id)
            return None
        except AnalysisError as e:
            logger.warning(
                "Background validation of idea %s failed (%s, retryable=%s): %s",
                idea_id, e.kind, e.retryable, e.message,
            )
            return None

    if idea is None:
        logger.info("Idea %s disappeared before background validation finished", idea_id)
    return idea

async def _async_validate_idea_and_close(idea_id: uuid.UUID, owner_id: uuid.UUID, provider: Optional[str]):
    try:
        idea = await _async_validate_idea(idea_id, owner_id, provider)
        return idea.validation_status if idea else None
    finally:
        await close_async_context()

@celery_app.task(name="app.background.tasks.validate_idea_task")
def validate_idea_task(idea_id: str, owner_id: str, provider: Optional[str] = None):
    logger.info("Starting background validation for idea %s", idea_id)
    return run_async_task(
        _async_validate_idea_and_close, uuid.UUID(idea_id), uuid.UUID(owner_id), provider
    )
