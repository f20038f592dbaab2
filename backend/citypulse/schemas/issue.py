from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from citypulse.models.issue import IssueCategory, IssueStatus
from citypulse.schemas.profile import AuthorRead


class IssueCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: IssueCategory = IssueCategory.other
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    address: str | None = None
    ward: str | None = None
    photo_url: str | None = None

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("address", "ward", "photo_url")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class IssueRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str
    category: IssueCategory
    status: IssueStatus
    latitude: float
    longitude: float
    address: str | None = None
    ward: str | None = None
    photo_url: str | None = None
    before_photo_url: str | None = None
    after_photo_url: str | None = None
    upvotes: int
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None

    class Config:
        from_attributes = True


class IssueWithReporter(IssueRead):
    reporter: AuthorRead | None = None


class IssueWriteResult(BaseModel):
    success: bool = True
    issue: IssueRead


class CommentCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class CommentRead(BaseModel):
    id: int
    issue_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: datetime
    updated_at: datetime
    author: AuthorRead | None = None

    class Config:
        from_attributes = True


class CommentWriteResult(BaseModel):
    success: bool = True
    comment: CommentRead


class StatusChange(BaseModel):
    status: IssueStatus
    comment: str | None = None

    @field_validator("comment")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class StatusUpdateRead(BaseModel):
    id: int
    issue_id: uuid.UUID
    user_id: uuid.UUID | None = None
    old_status: IssueStatus | None = None
    new_status: IssueStatus
    comment: str | None = None
    created_at: datetime
    author: AuthorRead | None = None

    class Config:
        from_attributes = True


class StatusWriteResult(BaseModel):
    success: bool = True
    issue: IssueRead
    update: StatusUpdateRead


class VoteResult(BaseModel):
    success: bool = True
    issue_id: uuid.UUID
    has_voted: bool
    upvotes: int


class VoteRead(BaseModel):
    issue_id: uuid.UUID
    created_at: datetime

    class Config:
        from_attributes = True


class PhotoWriteResult(BaseModel):
    success: bool = True
    kind: str
    url: str
    issue: IssueRead
