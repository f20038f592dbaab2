from citypulse.models.auth import RefreshToken
from citypulse.models.issue import (
    CATEGORY_LABELS,
    Issue,
    IssueCategory,
    IssueComment,
    IssueMetric,
    IssueStatus,
    IssueUpdate,
    IssueVote,
)
from citypulse.models.user import STAFF_ROLES, Profile, UserRole

__all__ = [
    "CATEGORY_LABELS",
    "Issue",
    "IssueCategory",
    "IssueComment",
    "IssueMetric",
    "IssueStatus",
    "IssueUpdate",
    "IssueVote",
    "Profile",
    "RefreshToken",
    "STAFF_ROLES",
    "UserRole",
]
