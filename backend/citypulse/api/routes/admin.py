import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citypulse.api.deps import get_db, require_admin
from citypulse.core.config import settings
from citypulse.core.errors import StoreError
from citypulse.models.user import Profile
from citypulse.schemas.profile import ProfileRead, ProfileWriteResult, RoleUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.api_v1_prefix}/admin", tags=["Admin"])


@router.patch("/profiles/{profile_id}/role", response_model=ProfileWriteResult)
async def set_role(
    profile_id: uuid.UUID,
    payload: RoleUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_admin),
) -> ProfileWriteResult:
    profile = await session.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    if profile.id == current_user.id and payload.role != current_user.role:
        raise HTTPException(status_code=400, detail="Admins cannot change their own role")

    previous = profile.role
    profile.role = payload.role
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        logger.error("Failed to update role", extra={"profile_id": str(profile_id)}, exc_info=True)
        await session.rollback()
        raise StoreError("Failed to update role") from exc
    await session.refresh(profile)
    logger.info(
        "Profile role changed",
        extra={"profile_id": str(profile_id), "old_role": previous.value, "new_role": payload.role.value},
    )
    return ProfileWriteResult(profile=ProfileRead.model_validate(profile))
