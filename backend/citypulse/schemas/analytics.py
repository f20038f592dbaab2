from __future__ import annotations

import datetime as dt

from pydantic import BaseModel

from citypulse.schemas.issue import IssueWithReporter
from citypulse.schemas.profile import ProfileRead


class _FromAttributes(BaseModel):
    class Config:
        from_attributes = True


class IssueSummaryRead(_FromAttributes):
    total: int
    unresolved: int
    in_progress: int
    resolved: int
    resolution_rate: float
    avg_resolution_hours: float


class CategoryCountRead(_FromAttributes):
    category: str
    label: str
    count: int


class CategoryPerformanceRead(_FromAttributes):
    category: str
    label: str
    total: int
    resolved: int
    resolution_rate: float
    avg_resolution_hours: float


class WardStatRead(_FromAttributes):
    ward: str
    count: int
    resolved: int
    resolution_rate: float
    avg_resolution_hours: float


class TrendBucketRead(_FromAttributes):
    key: str
    label: str
    total: int
    unresolved: int
    in_progress: int
    resolved: int


class StatusSlice(BaseModel):
    status: str
    label: str
    value: int


class MetricSnapshotRead(_FromAttributes):
    date: dt.date
    total_issues: int
    new_issues: int
    resolved_issues: int
    avg_resolution_hours: float | None = None


class StaffDashboardView(BaseModel):
    viewer: ProfileRead
    summary: IssueSummaryRead
    status_distribution: list[StatusSlice]
    top_categories: list[CategoryCountRead]
    daily_trend: list[TrendBucketRead]
    metrics: list[MetricSnapshotRead]
    issues: list[IssueWithReporter]


class AdminOverviewView(BaseModel):
    viewer: ProfileRead
    stats: IssueSummaryRead
    resolution_rate: float
    avg_resolution_days: float
    category_distribution: list[CategoryCountRead]
    status_distribution: list[StatusSlice]
    ward_hotspots: list[WardStatRead]
    metrics: list[MetricSnapshotRead]
    issues: list[IssueWithReporter]


class AnalyticsView(BaseModel):
    total: int
    resolved: int
    resolution_rate: float
    avg_resolution_hours: float
    active_wards: int
    ward_performance: list[WardStatRead]
    monthly_trend: list[TrendBucketRead]
    category_performance: list[CategoryPerformanceRead]
    metrics: list[MetricSnapshotRead]
