"""
Write path for issues, votes, comments, status changes and profiles.

Each public coroutine takes the caller's session and profile explicitly and
performs one user action in a single transaction: the vote row and the
cached ``upvotes`` counter, or the status change and its audit row, commit
together or not at all. Store failures are logged, rolled back and re-raised
as ``StoreError``; nothing is retried.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citypulse.core.errors import StoreError
from citypulse.models.issue import Issue, IssueComment, IssueStatus, IssueUpdate, IssueVote
from citypulse.models.user import Profile
from citypulse.schemas.issue import CommentCreate, IssueCreate, StatusChange
from citypulse.schemas.profile import ProfileUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActorContext:
    session: AsyncSession
    profile: Profile

    @property
    def user_id(self) -> uuid.UUID:
        return self.profile.id


@dataclass(frozen=True)
class VoteOutcome:
    has_voted: bool
    upvotes: int


async def _commit(session: AsyncSession, action: str, **extra) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        logger.error("Store write failed", extra={"action": action, **extra}, exc_info=True)
        await session.rollback()
        raise StoreError(f"Failed to {action.replace('_', ' ')}") from exc


async def get_issue_or_404(session: AsyncSession, issue_id: uuid.UUID) -> Issue:
    issue = await session.get(Issue, issue_id)
    if not issue:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Issue not found")
    return issue


async def has_voted(session: AsyncSession, issue_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    stmt = select(IssueVote.id).where(IssueVote.issue_id == issue_id, IssueVote.user_id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none() is not None


async def create_issue(ctx: ActorContext, payload: IssueCreate) -> Issue:
    issue = Issue(
        user_id=ctx.user_id,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        latitude=payload.latitude,
        longitude=payload.longitude,
        address=payload.address,
        ward=payload.ward,
        photo_url=payload.photo_url,
        status=IssueStatus.unresolved,
        upvotes=0,
        resolved_at=None,
    )
    ctx.session.add(issue)
    await _commit(ctx.session, "create_issue", user_id=str(ctx.user_id))
    await ctx.session.refresh(issue)
    logger.info("Issue reported", extra={"issue_id": str(issue.id), "category": issue.category.value})
    return issue


async def toggle_vote(ctx: ActorContext, issue_id: uuid.UUID) -> VoteOutcome:
    """Add the caller's vote, or remove it if present, moving the counter with it."""
    session = ctx.session
    issue = await get_issue_or_404(session, issue_id)
    stmt = select(IssueVote).where(IssueVote.issue_id == issue_id, IssueVote.user_id == ctx.user_id)
    existing = (await session.execute(stmt)).scalar_one_or_none()

    if existing:
        await session.delete(existing)
        issue.upvotes = max((issue.upvotes or 0) - 1, 0)
        voted = False
    else:
        session.add(IssueVote(issue_id=issue_id, user_id=ctx.user_id))
        issue.upvotes = (issue.upvotes or 0) + 1
        voted = True

    await _commit(session, "record_vote", issue_id=str(issue_id), user_id=str(ctx.user_id))
    return VoteOutcome(has_voted=voted, upvotes=issue.upvotes)


async def recount_upvotes(ctx: ActorContext, issue_id: uuid.UUID) -> Issue:
    """Reset the cached counter to the number of vote rows."""
    session = ctx.session
    issue = await get_issue_or_404(session, issue_id)
    stmt = select(func.count(IssueVote.id)).where(IssueVote.issue_id == issue_id)
    actual = (await session.execute(stmt)).scalar_one()
    if actual != issue.upvotes:
        logger.warning(
            "Upvote counter drifted", extra={"issue_id": str(issue_id), "cached": issue.upvotes, "actual": actual}
        )
    issue.upvotes = actual
    await _commit(session, "recount_upvotes", issue_id=str(issue_id))
    return issue


async def change_status(ctx: ActorContext, issue_id: uuid.UUID, payload: StatusChange) -> tuple[Issue, IssueUpdate]:
    session = ctx.session
    issue = await get_issue_or_404(session, issue_id)
    old_status = issue.status

    issue.status = payload.status
    if payload.status != IssueStatus.resolved:
        issue.resolved_at = None
    elif old_status != IssueStatus.resolved or issue.resolved_at is None:
        issue.resolved_at = datetime.now(timezone.utc)
    update = IssueUpdate(
        issue_id=issue.id,
        user_id=ctx.user_id,
        old_status=old_status,
        new_status=payload.status,
        comment=payload.comment,
    )
    session.add(update)

    await _commit(session, "update_status", issue_id=str(issue_id), user_id=str(ctx.user_id))
    await session.refresh(update)
    logger.info(
        "Issue status changed",
        extra={
            "issue_id": str(issue_id),
            "old_status": old_status.value if old_status else None,
            "new_status": payload.status.value,
        },
    )
    return issue, update


async def post_comment(ctx: ActorContext, issue_id: uuid.UUID, payload: CommentCreate) -> IssueComment:
    session = ctx.session
    await get_issue_or_404(session, issue_id)
    comment = IssueComment(issue_id=issue_id, user_id=ctx.user_id, content=payload.content)
    session.add(comment)
    await _commit(session, "post_comment", issue_id=str(issue_id))
    await session.refresh(comment)
    return comment


async def update_profile(ctx: ActorContext, payload: ProfileUpdate) -> Profile:
    profile = ctx.profile
    profile.full_name = payload.full_name.strip()
    phone = (payload.phone or "").strip()
    profile.phone = phone or None
    await _commit(ctx.session, "update_profile", user_id=str(profile.id))
    await ctx.session.refresh(profile)
    return profile


async def attach_photo(ctx: ActorContext, issue: Issue, kind: str, url: str) -> Issue:
    column = {"photo": "photo_url", "before": "before_photo_url", "after": "after_photo_url"}[kind]
    setattr(issue, column, url)
    await _commit(ctx.session, "attach_photo", issue_id=str(issue.id), kind=kind)
    return issue
