from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings, get_settings
from .models import Base

settings = get_settings()


def _connect_args(settings: Settings) -> dict[str, Any]:
    # Only aiomysql understands connect_timeout; other drivers reject unknown kwargs.
    if settings.database_url.startswith("mysql+aiomysql"):
        return {"connect_timeout": int(settings.store_timeout_seconds)}
    return {}


engine = create_async_engine(
    settings.database_url,
    echo=settings.echo_sql,
    pool_pre_ping=True,
    pool_recycle=3600,
    pool_timeout=settings.store_timeout_seconds,
    connect_args=_connect_args(settings),
)

async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_db(bind: AsyncEngine = engine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(bind: AsyncEngine = engine) -> None:
    await bind.dispose()
