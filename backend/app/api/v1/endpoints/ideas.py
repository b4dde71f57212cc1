from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from kombu.exceptions import OperationalError as BrokerError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import uuid

from app.schemas.idea import (
    DashboardSummary, Idea, IdeaCreate, IdeaUpdate, IdeaValidateRequest,
    SortKey, StatusFilter,
)
from app.models.user import User
from app.core.dependencies import get_current_user_with_provisioning as get_current_user
from app.core.celery_app import celery_app
from app.core.exceptions import QueueUnavailable
from app.database import get_db
from app.services import idea_service

router = APIRouter()

VALIDATE_TASK_NAME = "app.background.tasks.validate_idea_task"


def _gone(idea_id: uuid.UUID) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Idea {idea_id} was deleted during analysis")


@router.post("/", response_model=Idea, status_code=status.HTTP_201_CREATED)
async def create_idea(
    idea_in: IdeaCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Store a new idea and run its analysis.
    If the analysis fails the idea is still stored; the error response
    carries its `idea_id` so the client can offer a re-validate action.
    """
    idea = await idea_service.create_idea(db=db, owner_id=current_user.id, idea_in=idea_in)
    if idea is None:
        raise HTTPException(status_code=404, detail="Idea was deleted during analysis")
    return idea

@router.get("/", response_model=List[Idea])
async def list_ideas(
    search: Optional[str] = None,
    tag: Optional[str] = None,
    status_filter: StatusFilter = Query("all", alias="status"),
    sort: SortKey = "newest",
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    List the current user's ideas, filtered and sorted.
    """
    return await idea_service.list_ideas(
        db=db, owner_id=current_user.id,
        search=search, tag=tag, status=status_filter, sort=sort,
    )

@router.get("/summary", response_model=DashboardSummary)
async def read_dashboard_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Aggregate numbers for the dashboard.
    """
    return await idea_service.get_dashboard_summary(db=db, owner_id=current_user.id)

@router.get("/{idea_id}", response_model=Idea)
async def read_idea(
    idea_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await idea_service.get_idea(db=db, owner_id=current_user.id, idea_id=idea_id)

@router.patch("/{idea_id}", response_model=Idea)
async def update_idea(
    idea_id: uuid.UUID,
    idea_in: IdeaUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Edit title, description or tags. The analysis is not re-run.
    """
    return await idea_service.update_idea(
        db=db, owner_id=current_user.id, idea_id=idea_id, idea_in=idea_in
    )

@router.delete("/{idea_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_idea(
    idea_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await idea_service.delete_idea(db=db, owner_id=current_user.id, idea_id=idea_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/{idea_id}/validate", response_model=Idea)
async def validate_idea(
    idea_id: uuid.UUID,
    response: Response,
    request: Optional[IdeaValidateRequest] = None,
    background: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Re-run the analysis for an idea and replace its current result.
    With `background=true` the idea is marked pending, the work is queued
    and the pending idea is returned with 202.
    """
    provider = request.provider if request else None

    if background:
        idea = await idea_service.mark_validation_pending(
            db=db, owner_id=current_user.id, idea_id=idea_id
        )
        try:
            celery_app.send_task(
                VALIDATE_TASK_NAME,
                args=[str(idea_id), str(current_user.id), provider],
            )
        except (BrokerError, ConnectionError) as e:
            error = QueueUnavailable("Background validation could not be queued; try again shortly.")
            await idea_service.mark_validation_failed(
                db=db, owner_id=current_user.id, idea_id=idea_id, error=error
            )
            raise error from e
        response.status_code = status.HTTP_202_ACCEPTED
        return idea

    idea = await idea_service.revalidate_idea(
        db=db, owner_id=current_user.id, idea_id=idea_id, provider=provider
    )
    if idea is None:
        raise _gone(idea_id)
    return idea
