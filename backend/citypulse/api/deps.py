import uuid
from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer, OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from citypulse.core.config import settings
from citypulse.core.errors import PageRedirect
from citypulse.core.security import decode_access_token
from citypulse.db.session import get_session
from citypulse.models.user import STAFF_ROLES, Profile, UserRole
from citypulse.services.issues import ActorContext

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_v1_prefix}/auth/login")
optional_bearer = HTTPBearer(auto_error=False)


async def get_db() -> AsyncSession:
    async for session in get_session():
        yield session


async def _load_profile(session: AsyncSession, token: str) -> Profile | None:
    sub = decode_access_token(token)
    if not sub:
        return None
    try:
        profile_id = uuid.UUID(sub)
    except ValueError:
        return None
    profile = await session.get(Profile, profile_id)
    if not profile or not profile.is_active:
        return None
    return profile


async def get_current_user(token: str = Depends(oauth2_scheme), session: AsyncSession = Depends(get_db)) -> Profile:
    profile = await _load_profile(session, token)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return profile


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
    session: AsyncSession = Depends(get_db),
) -> Profile | None:
    if not credentials:
        return None
    return await _load_profile(session, credentials.credentials)


def require_roles(*roles: UserRole) -> Callable[[Profile], Profile]:
    allowed_roles = tuple(roles)

    async def dependency(current_user: Profile = Depends(get_current_user)) -> Profile:
        if allowed_roles and current_user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return dependency


require_staff = require_roles(*STAFF_ROLES)
require_admin = require_roles(UserRole.admin)


async def get_actor(
    session: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
) -> ActorContext:
    return ActorContext(session=session, profile=current_user)


async def get_staff_actor(
    session: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_staff),
) -> ActorContext:
    return ActorContext(session=session, profile=current_user)


# Page guards: the same checks as above, answered with a redirect instead of 401/403


async def page_user(viewer: Profile | None = Depends(get_optional_user)) -> Profile:
    if viewer is None:
        raise PageRedirect(settings.login_route)
    return viewer


def page_staff(login_route: str | None = None) -> Callable[[Profile | None], Profile]:
    async def dependency(viewer: Profile | None = Depends(get_optional_user)) -> Profile:
        if viewer is None:
            raise PageRedirect(login_route or settings.login_route)
        if viewer.role not in STAFF_ROLES:
            raise PageRedirect(settings.home_route)
        return viewer

    return dependency
