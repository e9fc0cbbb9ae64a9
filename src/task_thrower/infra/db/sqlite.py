from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from pathlib import Path

from task_thrower.infra.db.task_repo_sqlite import Base


def make_sqlite_url(db_path: str) -> str:
    # ":memory:" keeps everything in the engine's connection
    if db_path == ":memory:":
        return "sqlite+aiosqlite:///:memory:"
    p = Path(db_path).resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{p.as_posix()}"


def make_engine(sqlite_url: str) -> AsyncEngine:
    return create_async_engine(sqlite_url)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
