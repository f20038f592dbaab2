import uuid
from typing import Literal

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from citypulse.api.deps import get_actor, get_db, get_optional_user
from citypulse.core.config import settings
from citypulse.models.issue import Issue, IssueCategory, IssueComment, IssueStatus, IssueUpdate
from citypulse.models.user import STAFF_ROLES, Profile
from citypulse.schemas.issue import (
    CommentCreate,
    CommentRead,
    CommentWriteResult,
    IssueCreate,
    IssueRead,
    IssueWithReporter,
    IssueWriteResult,
    PhotoWriteResult,
    StatusUpdateRead,
    VoteResult,
)
from citypulse.services import issues as issue_service
from citypulse.services.issues import ActorContext
from citypulse.utils.storage import ALLOWED_IMAGE_TYPES, photo_filename, public_storage_url, save_file

router = APIRouter(prefix=f"{settings.api_v1_prefix}/issues", tags=["Issues"])

SORT_ORDERS = {
    "newest": Issue.created_at.desc(),
    "oldest": Issue.created_at.asc(),
    "upvotes": Issue.upvotes.desc(),
}


@router.get("", response_model=list[IssueWithReporter])
async def list_issues(
    status_filter: IssueStatus | None = Query(default=None, alias="status"),
    category: IssueCategory | None = None,
    ward: str | None = None,
    search: str | None = Query(default=None, max_length=200),
    mine: bool = False,
    sort: Literal["newest", "oldest", "upvotes"] = "newest",
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_db),
    viewer: Profile | None = Depends(get_optional_user),
) -> list[IssueWithReporter]:
    stmt = select(Issue).options(selectinload(Issue.reporter))
    if status_filter:
        stmt = stmt.where(Issue.status == status_filter)
    if category:
        stmt = stmt.where(Issue.category == category)
    if ward:
        stmt = stmt.where(Issue.ward == ward)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Issue.title.ilike(pattern), Issue.description.ilike(pattern)))
    if mine:
        if viewer is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
        stmt = stmt.where(Issue.user_id == viewer.id)
    stmt = stmt.order_by(SORT_ORDERS[sort], Issue.id).offset(offset).limit(limit)
    result = await session.execute(stmt)
    return [IssueWithReporter.model_validate(issue) for issue in result.scalars().all()]


@router.post("", response_model=IssueWriteResult, status_code=status.HTTP_201_CREATED)
async def create_issue(payload: IssueCreate, ctx: ActorContext = Depends(get_actor)) -> IssueWriteResult:
    issue = await issue_service.create_issue(ctx, payload)
    return IssueWriteResult(issue=IssueRead.model_validate(issue))


@router.get("/{issue_id}", response_model=IssueWithReporter)
async def get_issue(issue_id: uuid.UUID, session: AsyncSession = Depends(get_db)) -> IssueWithReporter:
    stmt = select(Issue).options(selectinload(Issue.reporter)).where(Issue.id == issue_id)
    issue = (await session.execute(stmt)).scalar_one_or_none()
    if not issue:
        raise HTTPException(status_code=404, detail="Issue not found")
    return IssueWithReporter.model_validate(issue)


@router.post("/{issue_id}/vote", response_model=VoteResult)
async def toggle_vote(issue_id: uuid.UUID, ctx: ActorContext = Depends(get_actor)) -> VoteResult:
    outcome = await issue_service.toggle_vote(ctx, issue_id)
    return VoteResult(issue_id=issue_id, has_voted=outcome.has_voted, upvotes=outcome.upvotes)


@router.get("/{issue_id}/comments", response_model=list[CommentRead])
async def list_comments(issue_id: uuid.UUID, session: AsyncSession = Depends(get_db)) -> list[CommentRead]:
    await issue_service.get_issue_or_404(session, issue_id)
    stmt = select(IssueComment).where(IssueComment.issue_id == issue_id).order_by(IssueComment.created_at.asc())
    result = await session.execute(stmt)
    return [CommentRead.model_validate(comment) for comment in result.scalars().all()]


@router.post("/{issue_id}/comments", response_model=CommentWriteResult, status_code=status.HTTP_201_CREATED)
async def post_comment(
    issue_id: uuid.UUID,
    payload: CommentCreate,
    ctx: ActorContext = Depends(get_actor),
) -> CommentWriteResult:
    comment = await issue_service.post_comment(ctx, issue_id, payload)
    return CommentWriteResult(comment=CommentRead.model_validate(comment))


@router.get("/{issue_id}/updates", response_model=list[StatusUpdateRead])
async def list_updates(issue_id: uuid.UUID, session: AsyncSession = Depends(get_db)) -> list[StatusUpdateRead]:
    await issue_service.get_issue_or_404(session, issue_id)
    stmt = (
        select(IssueUpdate)
        .where(IssueUpdate.issue_id == issue_id)
        .order_by(IssueUpdate.created_at.desc(), IssueUpdate.id.desc())
    )
    result = await session.execute(stmt)
    return [StatusUpdateRead.model_validate(update) for update in result.scalars().all()]


@router.post("/{issue_id}/photos/{kind}", response_model=PhotoWriteResult)
async def upload_photo(
    issue_id: uuid.UUID,
    kind: Literal["photo", "before", "after"],
    request: Request,
    file: UploadFile = File(...),
    ctx: ActorContext = Depends(get_actor),
) -> PhotoWriteResult:
    issue = await issue_service.get_issue_or_404(ctx.session, issue_id)
    is_staff = ctx.profile.role in STAFF_ROLES
    if kind == "after" and not is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only staff can attach resolution photos")
    if kind != "after" and issue.user_id != ctx.user_id and not is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the reporter can attach photos")
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Unsupported image type")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    path = save_file(photo_filename(issue.id, kind, file.content_type), content)
    url = public_storage_url(request, path)
    issue = await issue_service.attach_photo(ctx, issue, kind, url)
    return PhotoWriteResult(kind=kind, url=url, issue=IssueRead.model_validate(issue))
