"""
Reporting aggregates over in-memory issue records.

Everything here is a pure function of its arguments: no database access, no
clock reads unless the caller leaves ``today`` unset, and no state kept
between calls. Inputs only need ``status``, ``category``, ``ward``,
``created_at`` and ``resolved_at`` attributes, so ORM rows and read schemas
can be passed interchangeably.

Null or blank groupings are never dropped: a missing category counts as
``other`` and a missing ward as ``Unknown``. Rates and averages return 0 for
an empty denominator. A timestamp that is not ISO 8601 is treated as
missing, so that record drops out of time-based figures.
"""
from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Protocol

from citypulse.models.issue import CATEGORY_LABELS, IssueCategory, IssueStatus

STATUSES: tuple[str, ...] = tuple(status.value for status in IssueStatus)
OTHER_CATEGORY = IssueCategory.other.value
UNKNOWN_WARD = "Unknown"

_KNOWN_CATEGORIES = {category.value for category in IssueCategory}
_SECONDS_PER_UNIT = {"hours": 3600.0, "days": 86400.0}


class IssueLike(Protocol):
    status: Any
    category: Any
    ward: str | None
    created_at: Any
    resolved_at: Any


class SnapshotLike(Protocol):
    date: Any


@dataclass(frozen=True)
class CategoryCount:
    category: str
    label: str
    count: int


@dataclass(frozen=True)
class CategoryPerformance:
    category: str
    label: str
    total: int
    resolved: int
    resolution_rate: float
    avg_resolution_hours: float


@dataclass(frozen=True)
class WardStat:
    ward: str
    count: int
    resolved: int
    resolution_rate: float
    avg_resolution_hours: float


@dataclass(frozen=True)
class TrendBucket:
    key: str
    label: str
    total: int
    unresolved: int
    in_progress: int
    resolved: int


@dataclass
class _Group:
    total: int = 0
    resolved: int = 0
    hours: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class IssueSummary:
    total: int
    unresolved: int
    in_progress: int
    resolved: int
    resolution_rate: float
    avg_resolution_hours: float


def _value(raw: Any) -> Any:
    return raw.value if isinstance(raw, enum.Enum) else raw


def _status(issue: IssueLike) -> str | None:
    return _value(issue.status)


def _is_resolved(issue: IssueLike) -> bool:
    return _status(issue) == IssueStatus.resolved.value


def category_key(raw: Any) -> str:
    value = _value(raw)
    if not value or not str(value).strip():
        return OTHER_CATEGORY
    value = str(value).strip()
    return value if value in _KNOWN_CATEGORIES else OTHER_CATEGORY


def category_label(key: str) -> str:
    try:
        return CATEGORY_LABELS[IssueCategory(key)]
    except ValueError:
        return key.replace("_", " ").title()


def ward_key(raw: str | None) -> str:
    if raw is None or not raw.strip():
        return UNKNOWN_WARD
    return raw.strip()


def _to_datetime(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime(raw.year, raw.month, raw.day)
    else:
        try:
            value = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
        except ValueError:
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _iso_prefix(raw: Any) -> str:
    """The stored textual form of a timestamp; buckets match on its prefix."""
    if isinstance(raw, (datetime, date)):
        return raw.isoformat()
    return str(raw or "")


def _resolution_seconds(issue: IssueLike) -> float | None:
    if not _is_resolved(issue):
        return None
    resolved_at = _to_datetime(issue.resolved_at)
    created_at = _to_datetime(issue.created_at)
    if resolved_at is None or created_at is None:
        return None
    return (resolved_at - created_at).total_seconds()


def _rate(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 1)


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)


def status_tally(issues: Iterable[IssueLike]) -> dict[str, int]:
    tally = {status: 0 for status in STATUSES}
    for issue in issues:
        status = _status(issue)
        if status in tally:
            tally[status] += 1
    return tally


def resolution_rate(issues: Sequence[IssueLike]) -> float:
    resolved = sum(1 for issue in issues if _is_resolved(issue))
    return _rate(resolved, len(issues))


def mean_resolution_time(issues: Iterable[IssueLike], unit: str = "hours") -> float:
    """Average creation-to-resolution time over resolved issues with a resolution timestamp."""
    if unit not in _SECONDS_PER_UNIT:
        raise ValueError(f"Unsupported unit: {unit}")
    divisor = _SECONDS_PER_UNIT[unit]
    durations = [
        seconds / divisor
        for seconds in (_resolution_seconds(issue) for issue in issues)
        if seconds is not None
    ]
    return _mean(durations)


def _top(rows: list, top_n: int | None, count_attr: str) -> list:
    ranked = sorted(rows, key=lambda row: getattr(row, count_attr), reverse=True)
    return ranked if top_n is None else ranked[:top_n]


def category_histogram(issues: Iterable[IssueLike], top_n: int | None = None) -> list[CategoryCount]:
    counts: dict[str, int] = {}
    for issue in issues:
        key = category_key(issue.category)
        counts[key] = counts.get(key, 0) + 1
    rows = [CategoryCount(category=key, label=category_label(key), count=count) for key, count in counts.items()]
    return _top(rows, top_n, "count")


def _group_performance(issues: Iterable[IssueLike], key_fn) -> dict[str, _Group]:
    groups: dict[str, _Group] = {}
    for issue in issues:
        group = groups.setdefault(key_fn(issue), _Group())
        group.total += 1
        if _is_resolved(issue):
            group.resolved += 1
            seconds = _resolution_seconds(issue)
            if seconds is not None:
                group.hours.append(seconds / 3600.0)
    return groups


def category_performance(issues: Iterable[IssueLike]) -> list[CategoryPerformance]:
    groups = _group_performance(issues, lambda issue: category_key(issue.category))
    rows = [
        CategoryPerformance(
            category=key,
            label=category_label(key),
            total=group.total,
            resolved=group.resolved,
            resolution_rate=_rate(group.resolved, group.total),
            avg_resolution_hours=_mean(group.hours),
        )
        for key, group in groups.items()
    ]
    return _top(rows, None, "total")


def ward_ranking(issues: Iterable[IssueLike], top_n: int | None = None) -> list[WardStat]:
    groups = _group_performance(issues, lambda issue: ward_key(issue.ward))
    rows = [
        WardStat(
            ward=key,
            count=group.total,
            resolved=group.resolved,
            resolution_rate=_rate(group.resolved, group.total),
            avg_resolution_hours=_mean(group.hours),
        )
        for key, group in groups.items()
    ]
    return _top(rows, top_n, "count")


def _bucket(issues: Sequence[IssueLike], key: str, label: str) -> TrendBucket:
    matching = [issue for issue in issues if _iso_prefix(issue.created_at).startswith(key)]
    tally = status_tally(matching)
    return TrendBucket(
        key=key,
        label=label,
        total=len(matching),
        unresolved=tally["unresolved"],
        in_progress=tally["in_progress"],
        resolved=tally["resolved"],
    )


def _today(today: date | None) -> date:
    return today or datetime.now(timezone.utc).date()


def daily_trend(issues: Sequence[IssueLike], days: int = 7, today: date | None = None) -> list[TrendBucket]:
    """One bucket per calendar day ending today, oldest first, zero-filled."""
    end = _today(today)
    buckets = []
    for offset in range(days - 1, -1, -1):
        day = end - timedelta(days=offset)
        buckets.append(_bucket(issues, day.isoformat(), f"{day:%b} {day.day}"))
    return buckets


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def monthly_trend(issues: Sequence[IssueLike], months: int = 6, today: date | None = None) -> list[TrendBucket]:
    """One bucket per calendar month ending with the current one, oldest first, zero-filled."""
    end = _today(today)
    buckets = []
    for offset in range(months - 1, -1, -1):
        year, month = _shift_month(end.year, end.month, -offset)
        first = date(year, month, 1)
        buckets.append(_bucket(issues, f"{year:04d}-{month:02d}", f"{first:%b %Y}"))
    return buckets


def metric_window(snapshots: Iterable[SnapshotLike], days: int, today: date | None = None) -> list[SnapshotLike]:
    """Snapshots dated within the trailing ``days`` days, oldest first."""
    end = _today(today)
    start = end - timedelta(days=days - 1)
    selected = []
    for snapshot in snapshots:
        stamp = _to_datetime(snapshot.date)
        if stamp is not None and start <= stamp.date() <= end:
            selected.append((stamp.date(), snapshot))
    selected.sort(key=lambda pair: pair[0])
    return [snapshot for _, snapshot in selected]


def summarize(issues: Sequence[IssueLike]) -> IssueSummary:
    tally = status_tally(issues)
    return IssueSummary(
        total=len(issues),
        unresolved=tally["unresolved"],
        in_progress=tally["in_progress"],
        resolved=tally["resolved"],
        resolution_rate=resolution_rate(issues),
        avg_resolution_hours=mean_resolution_time(issues, "hours"),
    )
