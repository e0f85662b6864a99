# sdba/db/database.py
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine

from sdba import config


def normalize_database_url(url: str) -> str:
    # Ensure the URL uses SQLAlchemy's async driver. If the environment provides a
    # sync driver or no driver at all, convert it to use ``+asyncpg`` so that the
    # async engine works correctly.
    if not url.startswith("postgres"):
        return url
    if "+asyncpg" in url:
        return url
    if "+psycopg" in url:
        return url.replace("+psycopg", "+asyncpg")
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url.replace("postgresql://", "postgresql+asyncpg://", 1)


if not config.DB_URL:
    raise RuntimeError("DB_URL is not set in environment variables")

DATABASE_URL = normalize_database_url(config.DB_URL)

engine: AsyncEngine = create_async_engine(DATABASE_URL, pool_pre_ping=True)


async def get_session():
    async with AsyncSession(engine) as session:
        yield session
