"""
Role-gated view models for the front end.

Page routes never answer 401/403: a missing session or an insufficient role
is a 303 redirect to the configured login or home route.
"""
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from citypulse.api.deps import get_db, get_optional_user, page_staff, page_user
from citypulse.core.config import settings
from citypulse.models.issue import CATEGORY_LABELS, Issue, IssueComment, IssueMetric, IssueUpdate, IssueVote
from citypulse.models.user import Profile
from citypulse.schemas.analytics import AdminOverviewView, AnalyticsView, StaffDashboardView
from citypulse.schemas.issue import CommentRead, IssueRead, IssueWithReporter, StatusUpdateRead, VoteRead
from citypulse.schemas.pages import CategoryOption, HomeView, IssueDetailView, ProfilePageView, ReportFormView
from citypulse.schemas.profile import ProfileRead
from citypulse.services import issues as issue_service
from citypulse.services import reports

router = APIRouter(prefix="/pages", tags=["Pages"])

staff_page = page_staff()
admin_page = page_staff(settings.admin_login_route)


async def _all_issues(session: AsyncSession) -> list[Issue]:
    stmt = select(Issue).options(selectinload(Issue.reporter)).order_by(Issue.created_at.desc())
    return list((await session.execute(stmt)).scalars().all())


async def _recent_metrics(session: AsyncSession, days: int) -> list[IssueMetric]:
    since = datetime.now(timezone.utc).date() - timedelta(days=days)
    stmt = select(IssueMetric).where(IssueMetric.date >= since).order_by(IssueMetric.date.asc())
    return list((await session.execute(stmt)).scalars().all())


def _viewer(profile: Profile | None) -> ProfileRead | None:
    return ProfileRead.model_validate(profile) if profile else None


@router.get("/home", response_model=HomeView)
async def home(
    session: AsyncSession = Depends(get_db),
    viewer: Profile | None = Depends(get_optional_user),
) -> HomeView:
    issues = await _all_issues(session)
    return HomeView(viewer=_viewer(viewer), issues=[IssueWithReporter.model_validate(i) for i in issues])


@router.get("/issues/{issue_id}", response_model=IssueDetailView)
async def issue_detail(
    issue_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
    viewer: Profile | None = Depends(get_optional_user),
) -> IssueDetailView:
    stmt = select(Issue).options(selectinload(Issue.reporter)).where(Issue.id == issue_id)
    issue = (await session.execute(stmt)).scalar_one_or_none()
    if not issue:
        raise HTTPException(status_code=404, detail="Issue not found")

    comments = await session.execute(
        select(IssueComment).where(IssueComment.issue_id == issue_id).order_by(IssueComment.created_at.asc())
    )
    updates = await session.execute(
        select(IssueUpdate)
        .where(IssueUpdate.issue_id == issue_id)
        .order_by(IssueUpdate.created_at.desc(), IssueUpdate.id.desc())
    )
    voted = await issue_service.has_voted(session, issue_id, viewer.id) if viewer else False
    return IssueDetailView(
        viewer=_viewer(viewer),
        issue=IssueWithReporter.model_validate(issue),
        comments=[CommentRead.model_validate(c) for c in comments.scalars().all()],
        updates=[StatusUpdateRead.model_validate(u) for u in updates.scalars().all()],
        has_voted=voted,
    )


@router.get("/report", response_model=ReportFormView)
async def report_form(viewer: Profile = Depends(page_user)) -> ReportFormView:
    return ReportFormView(
        viewer=ProfileRead.model_validate(viewer),
        categories=[CategoryOption(value=category.value, label=label) for category, label in CATEGORY_LABELS.items()],
    )


@router.get("/profile", response_model=ProfilePageView)
async def profile_page(
    session: AsyncSession = Depends(get_db),
    viewer: Profile = Depends(page_user),
) -> ProfilePageView:
    issues = await session.execute(
        select(Issue).where(Issue.user_id == viewer.id).order_by(Issue.created_at.desc())
    )
    votes = await session.execute(
        select(IssueVote).where(IssueVote.user_id == viewer.id).order_by(IssueVote.created_at.desc())
    )
    return ProfilePageView(
        profile=ProfileRead.model_validate(viewer),
        issues=[IssueRead.model_validate(i) for i in issues.scalars().all()],
        votes=[VoteRead.model_validate(v) for v in votes.scalars().all()],
    )


@router.get("/dashboard", response_model=StaffDashboardView)
async def staff_dashboard(
    session: AsyncSession = Depends(get_db),
    viewer: Profile = Depends(staff_page),
) -> StaffDashboardView:
    issues = await _all_issues(session)
    snapshots = await _recent_metrics(session, settings.reporting.dashboard_metrics_days)
    return reports.build_staff_dashboard(viewer, issues, snapshots)


@router.get("/admin/dashboard", response_model=AdminOverviewView)
async def admin_dashboard(
    session: AsyncSession = Depends(get_db),
    viewer: Profile = Depends(admin_page),
) -> AdminOverviewView:
    issues = await _all_issues(session)
    snapshots = await _recent_metrics(session, settings.reporting.dashboard_metrics_days)
    return reports.build_admin_overview(viewer, issues, snapshots)


@router.get("/analytics", response_model=AnalyticsView)
async def analytics(session: AsyncSession = Depends(get_db)) -> AnalyticsView:
    issues = list((await session.execute(select(Issue))).scalars().all())
    snapshots = await _recent_metrics(session, settings.reporting.analytics_metrics_days)
    return reports.build_analytics(issues, snapshots)
