from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citypulse.core.errors import StoreError
from citypulse.core.security import get_password_hash
from citypulse.models.user import Profile, UserRole

logger = logging.getLogger(__name__)

ADMIN_FULL_NAME = "System Administrator"
MODERATOR_FULL_NAME = "Municipal Authority"


async def _upsert_staff(session: AsyncSession, email: str, password: str, role: UserRole, full_name: str) -> Profile:
    email = email.strip().lower()
    result = await session.execute(select(Profile).where(Profile.email == email))
    profile = result.scalar_one_or_none()
    if profile is None:
        profile = Profile(email=email, password_hash=get_password_hash(password))
        session.add(profile)
        logger.info("Creating staff profile", extra={"email": email, "role": role.value})
    else:
        profile.password_hash = get_password_hash(password)
        logger.info("Upgrading existing profile to staff", extra={"email": email, "role": role.value})
    profile.role = role
    profile.full_name = full_name
    profile.is_active = True
    return profile


async def bootstrap_staff(
    session: AsyncSession,
    admin_email: str,
    admin_password: str,
    moderator_email: str,
    moderator_password: str,
) -> tuple[Profile, Profile]:
    """Create or upgrade the admin and moderator profiles in one transaction."""
    admin = await _upsert_staff(session, admin_email, admin_password, UserRole.admin, ADMIN_FULL_NAME)
    moderator = await _upsert_staff(
        session, moderator_email, moderator_password, UserRole.moderator, MODERATOR_FULL_NAME
    )
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        logger.error("Failed to bootstrap staff accounts", exc_info=True)
        await session.rollback()
        raise StoreError("Failed to create staff accounts") from exc
    await session.refresh(admin)
    await session.refresh(moderator)
    return admin, moderator
