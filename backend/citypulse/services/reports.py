"""Dashboard view models assembled from aggregation output."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from citypulse.core.config import settings
from citypulse.models.issue import Issue, IssueMetric
from citypulse.models.user import Profile
from citypulse.schemas.analytics import (
    AdminOverviewView,
    AnalyticsView,
    CategoryCountRead,
    CategoryPerformanceRead,
    IssueSummaryRead,
    MetricSnapshotRead,
    StaffDashboardView,
    StatusSlice,
    TrendBucketRead,
    WardStatRead,
)
from citypulse.schemas.issue import IssueWithReporter
from citypulse.schemas.profile import ProfileRead
from citypulse.services import aggregation

STATUS_LABELS = {
    "unresolved": "Unresolved",
    "in_progress": "In Progress",
    "resolved": "Resolved",
}


def status_distribution(issues: Sequence[Issue], *, drop_empty: bool = False) -> list[StatusSlice]:
    tally = aggregation.status_tally(issues)
    slices = [StatusSlice(status=status, label=STATUS_LABELS[status], value=count) for status, count in tally.items()]
    if drop_empty:
        slices = [item for item in slices if item.value > 0]
    return slices


def _metrics(snapshots: Sequence[IssueMetric], days: int, today: date | None) -> list[MetricSnapshotRead]:
    return [MetricSnapshotRead.model_validate(m) for m in aggregation.metric_window(snapshots, days, today)]


def build_staff_dashboard(
    viewer: Profile,
    issues: Sequence[Issue],
    snapshots: Sequence[IssueMetric],
    today: date | None = None,
) -> StaffDashboardView:
    cfg = settings.reporting
    return StaffDashboardView(
        viewer=ProfileRead.model_validate(viewer),
        summary=IssueSummaryRead.model_validate(aggregation.summarize(issues)),
        status_distribution=status_distribution(issues),
        top_categories=[
            CategoryCountRead.model_validate(row)
            for row in aggregation.category_histogram(issues, top_n=cfg.top_categories)
        ],
        daily_trend=[
            TrendBucketRead.model_validate(row)
            for row in aggregation.daily_trend(issues, days=cfg.trend_days, today=today)
        ],
        metrics=_metrics(snapshots, cfg.dashboard_metrics_days, today),
        issues=[IssueWithReporter.model_validate(issue) for issue in issues],
    )


def build_admin_overview(
    viewer: Profile,
    issues: Sequence[Issue],
    snapshots: Sequence[IssueMetric],
    today: date | None = None,
) -> AdminOverviewView:
    cfg = settings.reporting
    return AdminOverviewView(
        viewer=ProfileRead.model_validate(viewer),
        stats=IssueSummaryRead.model_validate(aggregation.summarize(issues)),
        resolution_rate=aggregation.resolution_rate(issues),
        avg_resolution_days=aggregation.mean_resolution_time(issues, "days"),
        category_distribution=[CategoryCountRead.model_validate(row) for row in aggregation.category_histogram(issues)],
        status_distribution=status_distribution(issues, drop_empty=True),
        ward_hotspots=[
            WardStatRead.model_validate(row) for row in aggregation.ward_ranking(issues, top_n=cfg.top_wards)
        ],
        metrics=_metrics(snapshots, cfg.dashboard_metrics_days, today),
        issues=[IssueWithReporter.model_validate(issue) for issue in issues],
    )


def build_analytics(
    issues: Sequence[Issue],
    snapshots: Sequence[IssueMetric],
    today: date | None = None,
) -> AnalyticsView:
    cfg = settings.reporting
    summary = aggregation.summarize(issues)
    wards = aggregation.ward_ranking(issues, top_n=cfg.top_wards)
    return AnalyticsView(
        total=summary.total,
        resolved=summary.resolved,
        resolution_rate=summary.resolution_rate,
        avg_resolution_hours=summary.avg_resolution_hours,
        active_wards=len(wards),
        ward_performance=[WardStatRead.model_validate(row) for row in wards],
        monthly_trend=[
            TrendBucketRead.model_validate(row)
            for row in aggregation.monthly_trend(issues, months=cfg.trend_months, today=today)
        ],
        category_performance=[
            CategoryPerformanceRead.model_validate(row) for row in aggregation.category_performance(issues)
        ],
        metrics=_metrics(snapshots, cfg.analytics_metrics_days, today),
    )
