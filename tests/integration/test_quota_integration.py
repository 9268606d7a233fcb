from __future__ import annotations

from datetime import timedelta

import pytest

from quizduel.db.session import SessionLocal
from quizduel.economy.quota.service import get_remaining_quota
from quizduel.economy.quota.types import QuotaKind
from quizduel.game.errors import QuotaExceededError
from quizduel.game.matches.service import cancel_match, create_match
from quizduel.game.tournaments.service import create_tournament
from tests.integration.quizduel_fixtures import (
    NOW_UTC,
    _create_user,
    _grant_stadium,
    _seed_questions,
)


async def _create_matches(user_id: int, count: int) -> list:
    snapshots = []
    for idx in range(count):
        async with SessionLocal.begin() as session:
            snapshots.append(
                await create_match(
                    session,
                    user_id=user_id,
                    now_utc=NOW_UTC + timedelta(minutes=idx),
                )
            )
    return snapshots


@pytest.mark.asyncio
async def test_stadium_bonus_raises_match_limit_to_five() -> None:
    await _seed_questions(5)
    user_id = await _create_user("stadium-owner")
    await _grant_stadium(user_id, matches_bonus=2)

    await _create_matches(user_id, 4)
    async with SessionLocal.begin() as session:
        quota = await get_remaining_quota(
            session,
            user_id=user_id,
            kind=QuotaKind.MATCH,
            now_utc=NOW_UTC + timedelta(minutes=10),
        )
    assert (quota.used, quota.limit) == (4, 5)
    assert quota.reset_at == NOW_UTC + timedelta(hours=24)

    async with SessionLocal.begin() as session:
        await create_match(session, user_id=user_id, now_utc=NOW_UTC + timedelta(minutes=11))

    with pytest.raises(QuotaExceededError) as exc_info:
        async with SessionLocal.begin() as session:
            await create_match(session, user_id=user_id, now_utc=NOW_UTC + timedelta(minutes=12))
    assert exc_info.value.limit == 5
    assert exc_info.value.used == 5
    assert exc_info.value.kind == "match"


@pytest.mark.asyncio
async def test_lapsed_purchase_and_cancelled_matches_do_not_count() -> None:
    await _seed_questions(5)
    user_id = await _create_user("player")
    await _grant_stadium(
        user_id,
        matches_bonus=5,
        duration_seconds=3600,
        purchased_at=NOW_UTC - timedelta(hours=2),
    )

    snapshots = await _create_matches(user_id, 3)
    with pytest.raises(QuotaExceededError) as exc_info:
        async with SessionLocal.begin() as session:
            await create_match(session, user_id=user_id, now_utc=NOW_UTC + timedelta(minutes=5))
    assert exc_info.value.limit == 3

    async with SessionLocal.begin() as session:
        await cancel_match(
            session,
            match_id=snapshots[0].match_id,
            by_user_id=user_id,
            now_utc=NOW_UTC + timedelta(minutes=6),
        )
    async with SessionLocal.begin() as session:
        await create_match(session, user_id=user_id, now_utc=NOW_UTC + timedelta(minutes=7))


@pytest.mark.asyncio
async def test_quota_window_rolls_after_twenty_four_hours() -> None:
    await _seed_questions(5)
    user_id = await _create_user("player")
    await _create_matches(user_id, 3)

    async with SessionLocal.begin() as session:
        quota = await get_remaining_quota(
            session,
            user_id=user_id,
            kind=QuotaKind.MATCH,
            now_utc=NOW_UTC + timedelta(hours=24, seconds=30),
        )
    assert quota.used == 2
    assert quota.reset_at == NOW_UTC + timedelta(minutes=1, hours=24)


@pytest.mark.asyncio
async def test_tournament_quota_is_independent_from_match_quota() -> None:
    await _seed_questions(5)
    user_id = await _create_user("organizer")
    await _create_matches(user_id, 3)

    async with SessionLocal.begin() as session:
        quota = await get_remaining_quota(
            session,
            user_id=user_id,
            kind=QuotaKind.TOURNAMENT,
            now_utc=NOW_UTC + timedelta(minutes=5),
        )
    assert (quota.used, quota.limit, quota.reset_at) == (0, 1, None)

    async with SessionLocal.begin() as session:
        await create_tournament(session, user_id=user_id, now_utc=NOW_UTC + timedelta(minutes=6))

    with pytest.raises(QuotaExceededError) as exc_info:
        async with SessionLocal.begin() as session:
            await create_tournament(session, user_id=user_id, now_utc=NOW_UTC + timedelta(minutes=7))
    assert exc_info.value.kind == "tournament"
    assert exc_info.value.limit == 1
