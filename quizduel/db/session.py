from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from quizduel.core.config import get_settings

settings = get_settings()


def _build_engine(database_url: str) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        sqlite_engine = create_async_engine(
            database_url,
            echo=settings.database_echo,
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(sqlite_engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine
    return create_async_engine(
        database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


engine = _build_engine(settings.database_url)

SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def dispose_engine() -> None:
    await engine.dispose()
