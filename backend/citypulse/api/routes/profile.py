from fastapi import APIRouter, Depends

from citypulse.api.deps import get_actor, get_current_user
from citypulse.core.config import settings
from citypulse.models.user import Profile
from citypulse.schemas.profile import ProfileRead, ProfileUpdate, ProfileWriteResult
from citypulse.services import issues as issue_service
from citypulse.services.issues import ActorContext

router = APIRouter(prefix=f"{settings.api_v1_prefix}/profile", tags=["Profile"])


@router.get("", response_model=ProfileRead)
async def read_profile(current_user: Profile = Depends(get_current_user)) -> ProfileRead:
    return ProfileRead.model_validate(current_user)


@router.patch("", response_model=ProfileWriteResult)
async def update_profile(payload: ProfileUpdate, ctx: ActorContext = Depends(get_actor)) -> ProfileWriteResult:
    profile = await issue_service.update_profile(ctx, payload)
    return ProfileWriteResult(profile=ProfileRead.model_validate(profile))
