import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from citypulse.db.base import Base
from citypulse.models.mixins import TimestampMixin


class UserRole(str, enum.Enum):
    citizen = "citizen"
    moderator = "moderator"
    admin = "admin"


STAFF_ROLES = (UserRole.moderator, UserRole.admin)


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    full_name: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(32))
    role: Mapped[UserRole] = mapped_column(Enum(UserRole, name="userrole"), default=UserRole.citizen)
    avatar_url: Mapped[str | None] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    issues = relationship("Issue", back_populates="reporter", cascade="all,delete", foreign_keys="Issue.user_id")
    refresh_tokens = relationship("RefreshToken", back_populates="profile", cascade="all,delete-orphan")

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
