import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from feedesk.core.config import settings

logger = logging.getLogger(__name__)


def _url_for_log(url: str) -> str:
    """Strip credentials from the database URL."""
    return url.split("@", 1)[1] if "@" in url else url.split("://", 1)[0]


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

logger.info("Database engine created for ...@%s", _url_for_log(settings.database_url))


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session.

    One request is one unit of work: commit when the endpoint returns,
    roll everything back when it raises.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
