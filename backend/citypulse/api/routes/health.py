from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from citypulse.api.deps import get_db
from citypulse.core.config import settings

router = APIRouter(prefix=f"{settings.api_v1_prefix}/health", tags=["Health"])


@router.get("")
async def health_check(session: AsyncSession = Depends(get_db)) -> dict:
    """Liveness plus a round trip to the database."""
    await session.execute(text("SELECT 1"))
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
