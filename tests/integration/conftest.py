from __future__ import annotations

import pytest

import quizduel.db.models  # noqa: F401
from quizduel.db.models.base import Base
from quizduel.db.session import engine


@pytest.fixture(autouse=True)
async def reset_schema() -> None:
    # Dispose pooled connections between tests to avoid cross-event-loop reuse.
    await engine.dispose()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    await engine.dispose()
