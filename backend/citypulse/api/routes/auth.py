import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from citypulse.api.deps import get_current_user, get_db
from citypulse.core.config import settings
from citypulse.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    hash_token,
    verify_password,
)
from citypulse.models.auth import RefreshToken
from citypulse.models.user import Profile, UserRole
from citypulse.schemas.auth import (
    RefreshRequest,
    RegisterRequest,
    StaffBootstrapRequest,
    StaffBootstrapResponse,
    TokenResponse,
)
from citypulse.schemas.profile import ProfileRead
from citypulse.services.staff_accounts import bootstrap_staff

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.api_v1_prefix}/auth", tags=["Auth"])


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def _issue_tokens(
    session: AsyncSession,
    profile: Profile,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> TokenResponse:
    access_token = create_access_token(str(profile.id), extra={"role": profile.role.value})
    raw_refresh, refresh_hash, expires_at = create_refresh_token()

    session.add(
        RefreshToken(
            profile_id=profile.id,
            token_hash=refresh_hash,
            ip_address=ip_address,
            user_agent=user_agent,
            expires_at=expires_at,
        )
    )
    profile.last_login_at = datetime.now(timezone.utc)
    await session.commit()
    return TokenResponse(
        access_token=access_token,
        refresh_token=raw_refresh,
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.post("/register", response_model=ProfileRead, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, session: AsyncSession = Depends(get_db)) -> ProfileRead:
    email = payload.email.lower()
    result = await session.execute(select(Profile).where(Profile.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    profile = Profile(
        email=email,
        password_hash=get_password_hash(payload.password),
        full_name=(payload.full_name or "").strip() or None,
        phone=(payload.phone or "").strip() or None,
        role=UserRole.citizen,
    )
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    logger.info("Profile registered", extra={"profile_id": str(profile.id)})
    return ProfileRead.model_validate(profile)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: Request,
    form: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    result = await session.execute(select(Profile).where(Profile.email == form.username.lower()))
    profile = result.scalar_one_or_none()
    if not profile or not verify_password(form.password, profile.password_hash):
        logger.info("Rejected login", extra={"email": form.username.lower()})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not profile.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    return await _issue_tokens(
        session,
        profile,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh(payload: RefreshRequest, session: AsyncSession = Depends(get_db)) -> TokenResponse:
    stmt = (
        select(RefreshToken, Profile)
        .join(Profile, RefreshToken.profile_id == Profile.id)
        .where(RefreshToken.token_hash == hash_token(payload.refresh_token), RefreshToken.revoked.is_(False))
    )
    row = (await session.execute(stmt)).one_or_none()
    if not row:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    record, profile = row
    if _as_utc(record.expires_at) < datetime.now(timezone.utc):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    record.revoked = True
    if not profile.is_active:
        await session.commit()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account no longer active")

    return await _issue_tokens(session, profile)


@router.post("/logout")
async def logout(payload: RefreshRequest, session: AsyncSession = Depends(get_db)) -> dict:
    stmt = select(RefreshToken).where(
        RefreshToken.token_hash == hash_token(payload.refresh_token), RefreshToken.revoked.is_(False)
    )
    record = (await session.execute(stmt)).scalar_one_or_none()
    if record:
        record.revoked = True
        await session.commit()
    return {"success": True}


@router.get("/me", response_model=ProfileRead)
async def me(current_user: Profile = Depends(get_current_user)) -> ProfileRead:
    return ProfileRead.model_validate(current_user)


@router.post("/bootstrap-staff", response_model=StaffBootstrapResponse)
async def bootstrap_staff_accounts(
    payload: StaffBootstrapRequest,
    x_admin_key: str | None = Header(default=None),
    session: AsyncSession = Depends(get_db),
) -> StaffBootstrapResponse:
    if x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid bootstrap key")
    if payload.admin_email.lower() == payload.moderator_email.lower():
        raise HTTPException(status_code=400, detail="Admin and moderator emails must differ")

    admin, moderator = await bootstrap_staff(
        session,
        payload.admin_email,
        payload.admin_password,
        payload.moderator_email,
        payload.moderator_password,
    )
    return StaffBootstrapResponse(
        message="Admin and moderator accounts are ready",
        admin=ProfileRead.model_validate(admin),
        moderator=ProfileRead.model_validate(moderator),
    )
