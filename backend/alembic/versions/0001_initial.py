"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum("citizen", "moderator", "admin", name="userrole")
issue_status = sa.Enum("unresolved", "in_progress", "resolved", name="issuestatus")
issue_category = sa.Enum(
    "road_maintenance",
    "street_lighting",
    "waste_management",
    "water_supply",
    "drainage",
    "public_transport",
    "parks_recreation",
    "building_violations",
    "noise_pollution",
    "other",
    name="issuecategory",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("role", user_role, nullable=False, server_default="citizen"),
        sa.Column("avatar_url", sa.String(length=500)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_created_at", "profiles", ["created_at"])

    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("profile_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(length=255), nullable=False),
        sa.Column("user_agent", sa.String(length=255)),
        sa.Column("ip_address", sa.String(length=64)),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_refresh_tokens_profile_id", "refresh_tokens", ["profile_id"])
    op.create_index("ix_refresh_tokens_token_hash", "refresh_tokens", ["token_hash"], unique=True)
    op.create_index("ix_refresh_tokens_created_at", "refresh_tokens", ["created_at"])

    op.create_table(
        "issues",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", issue_category, nullable=False, server_default="other"),
        sa.Column("status", issue_status, nullable=False, server_default="unresolved"),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("address", sa.String(length=500)),
        sa.Column("ward", sa.String(length=100)),
        sa.Column("photo_url", sa.String(length=500)),
        sa.Column("before_photo_url", sa.String(length=500)),
        sa.Column("after_photo_url", sa.String(length=500)),
        sa.Column("upvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("resolved_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_issues_user_id", "issues", ["user_id"])
    op.create_index("ix_issues_category", "issues", ["category"])
    op.create_index("ix_issues_status", "issues", ["status"])
    op.create_index("ix_issues_ward", "issues", ["ward"])
    op.create_index("ix_issues_created_at", "issues", ["created_at"])

    op.create_table(
        "issue_votes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("issue_id", sa.Uuid(), sa.ForeignKey("issues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("issue_id", "user_id", name="uq_issue_vote_user"),
    )
    op.create_index("ix_issue_votes_issue_id", "issue_votes", ["issue_id"])
    op.create_index("ix_issue_votes_user_id", "issue_votes", ["user_id"])

    op.create_table(
        "issue_comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("issue_id", sa.Uuid(), sa.ForeignKey("issues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_issue_comments_issue_id", "issue_comments", ["issue_id"])
    op.create_index("ix_issue_comments_user_id", "issue_comments", ["user_id"])
    op.create_index("ix_issue_comments_created_at", "issue_comments", ["created_at"])

    op.create_table(
        "issue_updates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("issue_id", sa.Uuid(), sa.ForeignKey("issues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="SET NULL")),
        sa.Column("old_status", issue_status),
        sa.Column("new_status", issue_status, nullable=False),
        sa.Column("comment", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_issue_updates_issue_id", "issue_updates", ["issue_id"])

    op.create_table(
        "issue_metrics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_issues", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("new_issues", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("resolved_issues", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_resolution_hours", sa.Float()),
    )
    op.create_index("ix_issue_metrics_date", "issue_metrics", ["date"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_issue_metrics_date", table_name="issue_metrics")
    op.drop_table("issue_metrics")
    op.drop_index("ix_issue_updates_issue_id", table_name="issue_updates")
    op.drop_table("issue_updates")
    op.drop_index("ix_issue_comments_created_at", table_name="issue_comments")
    op.drop_index("ix_issue_comments_user_id", table_name="issue_comments")
    op.drop_index("ix_issue_comments_issue_id", table_name="issue_comments")
    op.drop_table("issue_comments")
    op.drop_index("ix_issue_votes_user_id", table_name="issue_votes")
    op.drop_index("ix_issue_votes_issue_id", table_name="issue_votes")
    op.drop_table("issue_votes")
    for index in ("ix_issues_created_at", "ix_issues_ward", "ix_issues_status", "ix_issues_category", "ix_issues_user_id"):
        op.drop_index(index, table_name="issues")
    op.drop_table("issues")
    op.drop_index("ix_refresh_tokens_created_at", table_name="refresh_tokens")
    op.drop_index("ix_refresh_tokens_token_hash", table_name="refresh_tokens")
    op.drop_index("ix_refresh_tokens_profile_id", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")
    op.drop_index("ix_profiles_created_at", table_name="profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")

    bind = op.get_bind()
    issue_category.drop(bind, checkfirst=True)
    issue_status.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
