#backend/app/services/idea_service.py
import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AnalysisError, IdeaServiceError, NotFound, ProviderUnavailable, StoreFailure, ValidationInput,
)
from app.database import commit_or_raise, execute_or_raise
from app.models.idea import Idea, ValidationStatus
from app.schemas.analysis import AnalysisResult
from app.schemas.idea import IdeaCreate, IdeaUpdate
from app.services import analysis_service, llm_service

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 50
RECENT_IDEAS_LIMIT = 5


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationInput(f"{field} must not be empty.")
    return value.strip()


def _clean_tags(tags: Optional[List[str]]) -> List[str]:
    """Trims tags, drops blanks and repeats. First occurrence wins."""
    cleaned: List[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if not tag or tag in cleaned:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationInput(f"Tags must be at most {MAX_TAG_LENGTH} characters.")
        cleaned.append(tag)
    return cleaned


def _check_provider(provider: Optional[str]) -> None:
    if provider is not None and provider not in llm_service.SUPPORTED_PROVIDERS:
        raise ValidationInput(f"Unsupported AI provider: {provider}")


async def _get_owned_idea(
    db: AsyncSession, owner_id: uuid.UUID, idea_id: uuid.UUID, reload: bool = False
) -> Idea | None:
    """
    Fetches an idea only if it belongs to `owner_id`.
    With `reload`, the row is re-read even if the session already holds it,
    so a concurrent delete is noticed.
    """
    stmt = select(Idea).filter(Idea.id == idea_id, Idea.owner_id == owner_id)
    if reload:
        stmt = stmt.execution_options(populate_existing=True)
    result = await execute_or_raise(db, stmt)
    return result.scalars().first()


async def get_idea(db: AsyncSession, owner_id: uuid.UUID, idea_id: uuid.UUID) -> Idea:
    idea = await _get_owned_idea(db, owner_id, idea_id)
    if not idea:
        raise NotFound("Idea not found")
    return idea


async def create_idea(db: AsyncSession, owner_id: uuid.UUID, idea_in: IdeaCreate) -> Idea | None:
    """
    Stores a new idea and validates it straight away.

    The draft is committed before the provider is called, so it is listable
    while the analysis runs and survives an analysis failure. On failure the
    AnalysisError is re-raised with `idea_id` set.
    """
    title = _require_text(idea_in.title, "Title")
    description = _require_text(idea_in.description, "Description")
    tags = _clean_tags(idea_in.tags)
    _check_provider(idea_in.provider)

    now = _now()
    idea = Idea(
        owner_id=owner_id,
        title=title,
        description=description,
        tags=tags,
        created_at=now,
        updated_at=now,
        validated=False,
        validation_status=ValidationStatus.PENDING.value,
    )
    db.add(idea)
    await commit_or_raise(db)
    logger.info("Created idea %s for owner %s", idea.id, owner_id)

    return await _run_validation(db, owner_id, idea.id, idea_in.provider)


async def update_idea(
    db: AsyncSession, owner_id: uuid.UUID, idea_id: uuid.UUID, idea_in: IdeaUpdate
) -> Idea:
    """
    Applies user edits to title, description and tags. Never re-runs analysis.
    """
    idea = await get_idea(db, owner_id, idea_id)
    changes = idea_in.model_dump(exclude_unset=True)

    if changes.get("title") is not None:
        idea.title = _require_text(changes["title"], "Title")
    if changes.get("description") is not None:
        idea.description = _require_text(changes["description"], "Description")
    if changes.get("tags") is not None:
        idea.tags = _clean_tags(changes["tags"])

    idea.updated_at = _now()
    await commit_or_raise(db)
    return idea


async def delete_idea(db: AsyncSession, owner_id: uuid.UUID, idea_id: uuid.UUID) -> None:
    """
    Deletes an owned idea. Deleting a missing or foreign idea is a no-op.
    """
    await execute_or_raise(db, delete(Idea).where(Idea.id == idea_id, Idea.owner_id == owner_id))
    await commit_or_raise(db)


async def mark_validation_pending(db: AsyncSession, owner_id: uuid.UUID, idea_id: uuid.UUID) -> Idea:
    idea = await get_idea(db, owner_id, idea_id)
    idea.validation_status = ValidationStatus.PENDING.value
    idea.validation_error = None
    idea.updated_at = _now()
    await commit_or_raise(db)
    return idea


async def revalidate_idea(
    db: AsyncSession, owner_id: uuid.UUID, idea_id: uuid.UUID, provider: Optional[str] = None
) -> Idea | None:
    """
    Re-runs the analysis on the idea's current fields and replaces any
    existing analysis. On failure the previous analysis is left in place.
    """
    _check_provider(provider)
    await mark_validation_pending(db, owner_id, idea_id)
    return await _run_validation(db, owner_id, idea_id, provider)


async def _run_validation(
    db: AsyncSession, owner_id: uuid.UUID, idea_id: uuid.UUID, provider: Optional[str]
) -> Idea | None:
    idea = await _get_owned_idea(db, owner_id, idea_id)
    if not idea:
        logger.info("Idea %s vanished before analysis started", idea_id)
        return None
    try:
        result = await analysis_service.request_analysis(
            idea.title, idea.description, list(idea.tags or []), provider
        )
    except AnalysisError as e:
        e.idea_id = idea_id
        await mark_validation_failed(db, owner_id, idea_id, e)
        raise
    except asyncio.CancelledError:
        # A cancelled request must not leave the idea pending forever
        await mark_validation_failed(
            db, owner_id, idea_id, ProviderUnavailable("Analysis was cancelled before it finished")
        )
        raise
    return await _apply_analysis(db, owner_id, idea_id, result)


async def _apply_analysis(
    db: AsyncSession, owner_id: uuid.UUID, idea_id: uuid.UUID, result: AnalysisResult
) -> Idea | None:
    idea = await _get_owned_idea(db, owner_id, idea_id, reload=True)
    if not idea:
        logger.info("Idea %s was deleted during analysis; discarding result", idea_id)
        return None

    payload = result.payload
    idea.market_demand = payload.market_demand
    idea.competitor_analysis = payload.competitor_analysis
    idea.tech_stack_suggestion = list(payload.tech_stack_suggestion)
    idea.feature_suggestions = list(payload.feature_suggestions)
    idea.mrr_projection_min = payload.mrr_projection.min
    idea.mrr_projection_max = payload.mrr_projection.max
    idea.effort_estimation_months = payload.effort_estimation.months
    idea.effort_estimation_team_size = payload.effort_estimation.team_size
    idea.ai_provider = result.provider
    idea.validated_at = result.validated_at

    idea.validated = True
    idea.validation_status = ValidationStatus.SUCCEEDED.value
    idea.validation_error = None
    idea.updated_at = _now()

    await commit_or_raise(db)
    logger.info("Idea %s validated by %s", idea_id, result.provider)
    return idea


async def mark_validation_failed(
    db: AsyncSession, owner_id: uuid.UUID, idea_id: uuid.UUID, error: IdeaServiceError
) -> None:
    """
    Records that a validation pass did not complete. Any previous analysis
    stays in place. Store errors are logged, not raised, because `error` is
    what the caller reports.
    """
    try:
        idea = await _get_owned_idea(db, owner_id, idea_id, reload=True)
        if not idea:
            logger.info("Idea %s was deleted during analysis; nothing to record", idea_id)
            return

        idea.validation_status = ValidationStatus.FAILED.value
        idea.validation_error = error.kind
        idea.updated_at = _now()
        await commit_or_raise(db)
    except StoreFailure:
        logger.exception("Could not record %s for idea %s", error.kind, idea_id)
    else:
        logger.warning("Validation of idea %s failed: %s", idea_id, error.kind)


def _matches_search(idea: Idea, term: str) -> bool:
    term = term.lower()
    return (
        term in idea.title.lower()
        or term in idea.description.lower()
        or any(term in tag.lower() for tag in idea.tags or [])
    )


async def list_ideas(
    db: AsyncSession,
    owner_id: uuid.UUID,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    status: str = "all",
    sort: str = "newest",
    limit: Optional[int] = None,
) -> List[Idea]:
    """
    Lists the owner's ideas with optional search/tag/status filters.
    Sorting by "highest-market" puts unvalidated ideas last.
    """
    order = Idea.created_at.asc() if sort == "oldest" else Idea.created_at.desc()
    stmt = (
        select(Idea)
        .filter(Idea.owner_id == owner_id)
        .order_by(order)
        .execution_options(populate_existing=True)
    )
    if status == "validated":
        stmt = stmt.filter(Idea.validated.is_(True))
    elif status == "pending":
        stmt = stmt.filter(Idea.validated.is_(False))

    result = await execute_or_raise(db, stmt)
    ideas = list(result.scalars().all())

    if search and search.strip():
        ideas = [i for i in ideas if _matches_search(i, search.strip())]
    if tag and tag.strip():
        wanted = tag.strip().lower()
        ideas = [i for i in ideas if any(t.lower() == wanted for t in i.tags or [])]

    if sort == "a-z":
        ideas.sort(key=lambda i: i.title.casefold())
    elif sort == "z-a":
        ideas.sort(key=lambda i: i.title.casefold(), reverse=True)
    elif sort == "highest-market":
        validated = sorted((i for i in ideas if i.validated), key=lambda i: i.market_demand, reverse=True)
        ideas = validated + [i for i in ideas if not i.validated]

    return ideas[:limit] if limit else ideas


async def get_dashboard_summary(db: AsyncSession, owner_id: uuid.UUID) -> dict:
    """
    Aggregate counts for the dashboard: totals, validated vs pending and the
    average market demand across validated ideas.
    """
    stmt = (
        select(
            func.count(Idea.id).label("total"),
            func.sum(case((Idea.validated.is_(True), 1), else_=0)).label("validated"),
            func.avg(case((Idea.validated.is_(True), Idea.market_demand), else_=None)).label("avg_demand"),
        )
        .where(Idea.owner_id == owner_id)
    )
    row = (await execute_or_raise(db, stmt)).one()

    total = row.total or 0
    validated = int(row.validated or 0)
    recent = await list_ideas(db, owner_id, sort="newest", limit=RECENT_IDEAS_LIMIT)

    return {
        "total_ideas": total,
        "validated_count": validated,
        "pending_count": total - validated,
        "average_market_demand": float(row.avg_demand) if row.avg_demand is not None else None,
        "recent_ideas": recent,
    }
