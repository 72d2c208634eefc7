"""Schema bootstrap over a direct Postgres connection.

Runtime reads and writes go through the Supabase REST API; this is only used
to create the tables on a fresh project.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import create_async_engine

from agriassist.models.db_models import Base


def async_url(database_url: str) -> str:
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


async def init_db(database_url: str):
    engine = create_async_engine(async_url(database_url))
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("[db] Schema ready: {}", ", ".join(sorted(Base.metadata.tables)))
    finally:
        await engine.dispose()
