from pydantic import BaseModel

from citypulse.schemas.issue import CommentRead, IssueRead, IssueWithReporter, StatusUpdateRead, VoteRead
from citypulse.schemas.profile import ProfileRead


class CategoryOption(BaseModel):
    value: str
    label: str


class HomeView(BaseModel):
    viewer: ProfileRead | None = None
    issues: list[IssueWithReporter]


class IssueDetailView(BaseModel):
    viewer: ProfileRead | None = None
    issue: IssueWithReporter
    comments: list[CommentRead]
    updates: list[StatusUpdateRead]
    has_voted: bool = False


class ReportFormView(BaseModel):
    viewer: ProfileRead
    categories: list[CategoryOption]


class ProfilePageView(BaseModel):
    profile: ProfileRead
    issues: list[IssueRead]
    votes: list[VoteRead]
