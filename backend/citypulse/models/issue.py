import datetime as dt
import enum
import uuid
from datetime import datetime

from sqlalchemy import Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from citypulse.db.base import Base
from citypulse.models.mixins import TimestampMixin, utcnow


class IssueStatus(str, enum.Enum):
    unresolved = "unresolved"
    in_progress = "in_progress"
    resolved = "resolved"


class IssueCategory(str, enum.Enum):
    road_maintenance = "road_maintenance"
    street_lighting = "street_lighting"
    waste_management = "waste_management"
    water_supply = "water_supply"
    drainage = "drainage"
    public_transport = "public_transport"
    parks_recreation = "parks_recreation"
    building_violations = "building_violations"
    noise_pollution = "noise_pollution"
    other = "other"


CATEGORY_LABELS: dict[IssueCategory, str] = {
    IssueCategory.road_maintenance: "Road Maintenance",
    IssueCategory.street_lighting: "Street Lighting",
    IssueCategory.waste_management: "Waste Management",
    IssueCategory.water_supply: "Water Supply",
    IssueCategory.drainage: "Drainage",
    IssueCategory.public_transport: "Public Transport",
    IssueCategory.parks_recreation: "Parks & Recreation",
    IssueCategory.building_violations: "Building Violations",
    IssueCategory.noise_pollution: "Noise Pollution",
    IssueCategory.other: "Other",
}


class Issue(Base, TimestampMixin):
    __tablename__ = "issues"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text)
    category: Mapped[IssueCategory] = mapped_column(
        Enum(IssueCategory, name="issuecategory"), default=IssueCategory.other, index=True
    )
    status: Mapped[IssueStatus] = mapped_column(
        Enum(IssueStatus, name="issuestatus"), default=IssueStatus.unresolved, index=True
    )

    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)
    address: Mapped[str | None] = mapped_column(String(500))
    ward: Mapped[str | None] = mapped_column(String(100), index=True)

    photo_url: Mapped[str | None] = mapped_column(String(500))
    before_photo_url: Mapped[str | None] = mapped_column(String(500))
    after_photo_url: Mapped[str | None] = mapped_column(String(500))

    # Cached count of issue_votes rows, kept in step by the vote service
    upvotes: Mapped[int] = mapped_column(Integer, default=0)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    reporter = relationship("Profile", back_populates="issues", foreign_keys=[user_id])
    votes = relationship("IssueVote", back_populates="issue", cascade="all,delete-orphan")
    comments = relationship(
        "IssueComment", back_populates="issue", cascade="all,delete-orphan", order_by="IssueComment.created_at"
    )
    updates = relationship(
        "IssueUpdate", back_populates="issue", cascade="all,delete-orphan", order_by="IssueUpdate.created_at.desc()"
    )


class IssueVote(Base):
    __tablename__ = "issue_votes"
    __table_args__ = (UniqueConstraint("issue_id", "user_id", name="uq_issue_vote_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    issue_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("issues.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    issue = relationship("Issue", back_populates="votes")


class IssueComment(Base, TimestampMixin):
    __tablename__ = "issue_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    issue_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("issues.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    content: Mapped[str] = mapped_column(Text)

    issue = relationship("Issue", back_populates="comments")
    author = relationship("Profile", lazy="joined")


class IssueUpdate(Base):
    """Audit row written with every status change."""

    __tablename__ = "issue_updates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    issue_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("issues.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"))
    old_status: Mapped[IssueStatus | None] = mapped_column(Enum(IssueStatus, name="issuestatus"))
    new_status: Mapped[IssueStatus] = mapped_column(Enum(IssueStatus, name="issuestatus"))
    comment: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    issue = relationship("Issue", back_populates="updates")
    author = relationship("Profile", lazy="joined")


class IssueMetric(Base):
    """Daily snapshot produced outside the application; read-only here."""

    __tablename__ = "issue_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date, unique=True, index=True)
    total_issues: Mapped[int] = mapped_column(Integer, default=0)
    new_issues: Mapped[int] = mapped_column(Integer, default=0)
    resolved_issues: Mapped[int] = mapped_column(Integer, default=0)
    avg_resolution_hours: Mapped[float | None] = mapped_column(Float)
