from __future__ import annotations

import random
from datetime import timedelta

import pytest

from quizduel.db.repo.analytics_repo import AnalyticsRepo
from quizduel.db.repo.tournament_matches_repo import TournamentMatchesRepo
from quizduel.db.repo.tournaments_repo import TournamentsRepo
from quizduel.db.session import SessionLocal
from quizduel.game.errors import InvalidStateError, NotFoundError, UnauthorizedError
from quizduel.game.matches.service import (
    cancel_match,
    create_match,
    expire_due_matches,
    join_match,
    leave_match,
)
from quizduel.game.tournaments.service import create_tournament, join_tournament
from quizduel.workers.tasks import match_expiry_async
from quizduel.workers.tasks.match_expiry_async import run_match_expiry_sweep_async
from tests.integration.quizduel_fixtures import (
    NOW_UTC,
    _create_user,
    _match_status,
    _participant_ids,
    _play_all,
    _seed_questions,
)


@pytest.mark.asyncio
async def test_expire_due_matches_cancels_only_open_expired_matches() -> None:
    await _seed_questions(5)
    waiting_owner = await _create_user("waiting-owner")
    active_owner = await _create_user("active-owner")
    opponent = await _create_user("opponent")
    fresh_owner = await _create_user("fresh-owner")

    async with SessionLocal.begin() as session:
        waiting = await create_match(session, user_id=waiting_owner, now_utc=NOW_UTC)
        active = await create_match(session, user_id=active_owner, now_utc=NOW_UTC)
        completed = await create_match(
            session,
            user_id=fresh_owner,
            now_utc=NOW_UTC + timedelta(minutes=1),
        )
    async with SessionLocal.begin() as session:
        await join_match(session, user_id=opponent, match_id=active.match_id, now_utc=NOW_UTC)
        await join_match(session, user_id=active_owner, match_id=completed.match_id, now_utc=NOW_UTC)
    await _play_all(completed.match_id, fresh_owner, correct=3, seconds_each=5)
    await _play_all(completed.match_id, active_owner, correct=2, seconds_each=5)
    assert await _match_status(completed.match_id) == "completed"

    async with SessionLocal.begin() as session:
        result = await expire_due_matches(
            session,
            now_utc=NOW_UTC + timedelta(hours=24, minutes=1),
            limit=50,
        )
    assert result.matches_cancelled == 2
    assert result.matches_failed == 0

    for match_id in (waiting.match_id, active.match_id):
        assert await _match_status(match_id) == "cancelled"
        assert await _participant_ids(match_id) == []
    assert await _match_status(completed.match_id) == "completed"
    assert len(await _participant_ids(completed.match_id)) == 2

    async with SessionLocal.begin() as session:
        assert await AnalyticsRepo.count_by_type(session, event_type="match_expired") == 2


@pytest.mark.asyncio
async def test_worker_sweep_cancels_expired_matches_and_waiting_tournaments() -> None:
    await _seed_questions(5)
    owner_id = await _create_user("owner")

    async with SessionLocal.begin() as session:
        match = await create_match(session, user_id=owner_id, now_utc=NOW_UTC)
        tournament = await create_tournament(session, user_id=owner_id, now_utc=NOW_UTC)

    early = await run_match_expiry_sweep_async(batch_size=10, now_utc=NOW_UTC + timedelta(hours=1))
    assert early["matches_cancelled"] == 0
    assert early["tournaments_cancelled"] == 0

    late = await run_match_expiry_sweep_async(batch_size=10, now_utc=NOW_UTC + timedelta(hours=25))
    assert late["matches_examined"] == 1
    assert late["matches_cancelled"] == 1
    assert late["tournaments_cancelled"] == 1
    assert await _match_status(match.match_id) == "cancelled"

    async with SessionLocal.begin() as session:
        row = await TournamentsRepo.get_by_id(session, tournament.tournament_id)
        assert row is not None
        assert row.status == "cancelled"


@pytest.mark.asyncio
async def test_expired_bracket_match_cancels_its_tournament() -> None:
    await _seed_questions(10)
    user_ids = [await _create_user(f"player-{idx}") for idx in range(4)]
    async with SessionLocal.begin() as session:
        tournament = await create_tournament(session, user_id=user_ids[0], now_utc=NOW_UTC)
    for user_id in user_ids[1:]:
        async with SessionLocal.begin() as session:
            await join_tournament(
                session,
                tournament_code=tournament.tournament_code,
                user_id=user_id,
                now_utc=NOW_UTC,
                rng=random.Random(11),
            )

    async with SessionLocal.begin() as session:
        result = await expire_due_matches(
            session,
            now_utc=NOW_UTC + timedelta(hours=30),
            limit=50,
        )
    # The first expired semifinal cancels the tournament, which stops the other one.
    assert result.matches_examined == 2
    assert result.matches_cancelled == 1

    async with SessionLocal.begin() as session:
        row = await TournamentsRepo.get_by_id(session, tournament.tournament_id)
        bracket = await TournamentMatchesRepo.list_for_tournament(
            session,
            tournament_id=tournament.tournament_id,
        )
    assert row is not None
    assert row.status == "cancelled"
    assert {item.status for item in bracket} == {"cancelled"}
    for item in bracket:
        assert await _match_status(item.match_id) == "cancelled"


@pytest.mark.asyncio
async def test_leave_and_cancel_match_rules() -> None:
    await _seed_questions(5)
    creator_id = await _create_user("creator")
    opponent_id = await _create_user("opponent")
    outsider_id = await _create_user("outsider")
    admin_id = await _create_user("admin", is_admin=True)

    async with SessionLocal.begin() as session:
        first = await create_match(session, user_id=creator_id, now_utc=NOW_UTC)
    async with SessionLocal.begin() as session:
        await join_match(session, user_id=opponent_id, match_id=first.match_id, now_utc=NOW_UTC)

    with pytest.raises(NotFoundError):
        async with SessionLocal.begin() as session:
            await leave_match(session, match_id=first.match_id, user_id=outsider_id, now_utc=NOW_UTC)

    async with SessionLocal.begin() as session:
        left = await leave_match(session, match_id=first.match_id, user_id=opponent_id, now_utc=NOW_UTC)
    assert left.status == "cancelled"
    assert await _participant_ids(first.match_id) == []

    with pytest.raises(InvalidStateError):
        async with SessionLocal.begin() as session:
            await leave_match(session, match_id=first.match_id, user_id=creator_id, now_utc=NOW_UTC)

    async with SessionLocal.begin() as session:
        second = await create_match(session, user_id=creator_id, now_utc=NOW_UTC)

    with pytest.raises(UnauthorizedError):
        async with SessionLocal.begin() as session:
            await cancel_match(session, match_id=second.match_id, by_user_id=outsider_id, now_utc=NOW_UTC)

    async with SessionLocal.begin() as session:
        cancelled = await cancel_match(
            session,
            match_id=second.match_id,
            by_user_id=admin_id,
            now_utc=NOW_UTC + timedelta(minutes=1),
        )
    assert cancelled.status == "cancelled"
    assert cancelled.completed_at == NOW_UTC + timedelta(minutes=1)

    with pytest.raises(InvalidStateError):
        async with SessionLocal.begin() as session:
            await cancel_match(session, match_id=second.match_id, by_user_id=creator_id, now_utc=NOW_UTC)


@pytest.mark.asyncio
async def test_worker_sweep_continues_after_a_failing_match(monkeypatch) -> None:
    await _seed_questions(5)
    owner_id = await _create_user("owner")
    match_ids = []
    for offset in range(3):
        async with SessionLocal.begin() as session:
            snapshot = await create_match(
                session,
                user_id=owner_id,
                now_utc=NOW_UTC + timedelta(minutes=offset),
            )
        match_ids.append(snapshot.match_id)
    broken_match_id = match_ids[1]
    real_expire_match = match_expiry_async.expire_match

    async def flaky_expire_match(session, *, match_id, now_utc):
        if match_id == broken_match_id:
            raise RuntimeError("simulated storage failure")
        return await real_expire_match(session, match_id=match_id, now_utc=now_utc)

    monkeypatch.setattr(match_expiry_async, "expire_match", flaky_expire_match)

    result = await run_match_expiry_sweep_async(
        batch_size=10,
        now_utc=NOW_UTC + timedelta(hours=25),
    )

    assert result["matches_examined"] == 3
    assert result["matches_failed"] == 1
    assert result["matches_cancelled"] == 2
    assert await _match_status(broken_match_id) == "waiting"
    for match_id in (match_ids[0], match_ids[2]):
        assert await _match_status(match_id) == "cancelled"
