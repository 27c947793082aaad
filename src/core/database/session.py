import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.core.config import settings

logger = logging.getLogger(__name__)

# Hide credentials in logs
_url_for_log = settings.database_url.split("@")[1] if "@" in settings.database_url else settings.database_url
logger.info("Database URL: ...@%s", _url_for_log)

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def create_schema() -> None:
    """Create all tables registered on Base.metadata (local runs without alembic)."""
    from src.core.database.base import Base
    import src.modules.reservations.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
