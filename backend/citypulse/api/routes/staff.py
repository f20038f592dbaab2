import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from citypulse.api.deps import get_db, get_staff_actor, require_staff
from citypulse.core.config import settings
from citypulse.models.issue import Issue, IssueStatus
from citypulse.models.user import Profile
from citypulse.schemas.issue import (
    IssueRead,
    IssueWithReporter,
    IssueWriteResult,
    StatusChange,
    StatusUpdateRead,
    StatusWriteResult,
)
from citypulse.services import issues as issue_service
from citypulse.services.issues import ActorContext

router = APIRouter(prefix=f"{settings.api_v1_prefix}/staff", tags=["Staff"])


@router.get("/issues", response_model=list[IssueWithReporter])
async def list_issues(
    status: IssueStatus | None = None,
    session: AsyncSession = Depends(get_db),
    _: Profile = Depends(require_staff),
) -> list[IssueWithReporter]:
    stmt = select(Issue).options(selectinload(Issue.reporter)).order_by(Issue.created_at.desc())
    if status:
        stmt = stmt.where(Issue.status == status)
    result = await session.execute(stmt)
    return [IssueWithReporter.model_validate(issue) for issue in result.scalars().all()]


@router.patch("/issues/{issue_id}/status", response_model=StatusWriteResult)
async def change_status(
    issue_id: uuid.UUID,
    payload: StatusChange,
    ctx: ActorContext = Depends(get_staff_actor),
) -> StatusWriteResult:
    issue, update = await issue_service.change_status(ctx, issue_id, payload)
    return StatusWriteResult(issue=IssueRead.model_validate(issue), update=StatusUpdateRead.model_validate(update))


@router.post("/issues/{issue_id}/recount-upvotes", response_model=IssueWriteResult)
async def recount_upvotes(issue_id: uuid.UUID, ctx: ActorContext = Depends(get_staff_actor)) -> IssueWriteResult:
    issue = await issue_service.recount_upvotes(ctx, issue_id)
    return IssueWriteResult(issue=IssueRead.model_validate(issue))
