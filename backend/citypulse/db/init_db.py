import logging

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from citypulse.core.config import get_settings
from citypulse.db.session import SessionLocal, init_db
from citypulse.services.staff_accounts import bootstrap_staff

logger = logging.getLogger(__name__)
settings = get_settings()


def _seed_credentials() -> tuple[str, str, str, str] | None:
    values = (
        settings.seed_admin_email,
        settings.seed_admin_password,
        settings.seed_moderator_email,
        settings.seed_moderator_password,
    )
    if not all(values):
        return None
    return values  # type: ignore[return-value]


async def seed_database(bind: AsyncEngine | None = None, session_factory: async_sessionmaker | None = None) -> None:
    """Create tables and, when seed credentials are configured, the staff profiles."""
    await init_db(bind)

    credentials = _seed_credentials()
    if credentials is None:
        logger.info("No seed staff credentials configured, skipping staff bootstrap")
        return

    async with (session_factory or SessionLocal)() as session:
        admin, moderator = await bootstrap_staff(session, *credentials)
        logger.info("Seeded staff profiles", extra={"admin": admin.email, "moderator": moderator.email})


if __name__ == "__main__":
    import asyncio

    asyncio.run(seed_database())
