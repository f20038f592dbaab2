import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr

from citypulse.models.user import UserRole


class AuthorRead(BaseModel):
    full_name: str | None = None
    email: EmailStr

    class Config:
        from_attributes = True


class ProfileRead(BaseModel):
    id: uuid.UUID
    email: EmailStr
    full_name: str | None = None
    phone: str | None = None
    role: UserRole
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    full_name: str
    phone: str | None = None


class ProfileWriteResult(BaseModel):
    success: bool = True
    profile: ProfileRead


class RoleUpdate(BaseModel):
    role: UserRole
