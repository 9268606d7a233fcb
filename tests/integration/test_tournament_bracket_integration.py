from __future__ import annotations

import random
from datetime import timedelta
from uuid import UUID

import pytest

from quizduel.db.models.tournament_matches import TournamentMatch
from quizduel.db.repo.matches_repo import MatchesRepo
from quizduel.db.repo.tournament_matches_repo import TournamentMatchesRepo
from quizduel.db.repo.tournaments_repo import TournamentsRepo
from quizduel.db.session import SessionLocal
from quizduel.game.errors import (
    AlreadyJoinedError,
    ExpiredError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
)
from quizduel.game.events import MatchCompleted
from quizduel.game.matches.service import cancel_match
from quizduel.game.tournaments.bracket import handle_bracket_match_completed
from quizduel.game.tournaments.service import (
    cancel_tournament,
    create_tournament,
    get_tournament_details,
    get_tournament_match_for_match,
    get_tournament_results,
    join_tournament,
    leave_tournament,
    list_user_tournament_history,
    list_user_tournaments,
    list_waiting_tournaments,
)
from tests.integration.quizduel_fixtures import (
    NOW_UTC,
    _create_user,
    _get_profile,
    _match_question_ids,
    _match_status,
    _participant_ids,
    _play_all,
    _seed_questions,
)


async def _bracket_rows(tournament_id: UUID) -> dict[str, TournamentMatch]:
    async with SessionLocal.begin() as session:
        rows = await TournamentMatchesRepo.list_for_tournament(session, tournament_id=tournament_id)
        return {row.round: row for row in rows}


async def _start_full_tournament() -> tuple[str, UUID, list[int]]:
    await _seed_questions(12)
    user_ids = [await _create_user(f"player-{idx}") for idx in range(4)]
    async with SessionLocal.begin() as session:
        snapshot = await create_tournament(session, user_id=user_ids[0], now_utc=NOW_UTC)
    rng = random.Random(7)
    for offset, user_id in enumerate(user_ids[1:], start=1):
        async with SessionLocal.begin() as session:
            result = await join_tournament(
                session,
                tournament_code=snapshot.tournament_code,
                user_id=user_id,
                now_utc=NOW_UTC + timedelta(minutes=offset),
                rng=rng,
            )
    assert result.bracket_started is True
    assert result.participants_total == 4
    return snapshot.tournament_code, snapshot.tournament_id, user_ids


async def _win_match(row: TournamentMatch, *, winner_id: int) -> None:
    loser_id = row.player2_id if winner_id == row.player1_id else row.player1_id
    await _play_all(row.match_id, winner_id, correct=4, seconds_each=10)
    await _play_all(row.match_id, loser_id, correct=1, seconds_each=10)


@pytest.mark.asyncio
async def test_bracket_starts_when_fourth_player_joins() -> None:
    tournament_code, tournament_id, user_ids = await _start_full_tournament()

    rows = await _bracket_rows(tournament_id)
    assert set(rows) == {"semi1", "semi2"}
    seeded = {rows["semi1"].player1_id, rows["semi1"].player2_id}
    seeded |= {rows["semi2"].player1_id, rows["semi2"].player2_id}
    assert seeded == set(user_ids)

    semi1_questions = await _match_question_ids(rows["semi1"].match_id)
    semi2_questions = await _match_question_ids(rows["semi2"].match_id)
    assert semi1_questions == semi2_questions
    for row in rows.values():
        assert row.status == "active"
        assert await _match_status(row.match_id) == "active"
        assert sorted(await _participant_ids(row.match_id)) == sorted(
            [row.player1_id, row.player2_id]
        )

    async with SessionLocal.begin() as session:
        tournament = await TournamentsRepo.get_by_id(session, tournament_id)
        assert tournament is not None
        assert tournament.status == "active"
        assert tournament.started_at == NOW_UTC + timedelta(minutes=3)
        assert len(tournament.final_question_ids or []) == 5
        semi_match = await MatchesRepo.get_by_id(session, rows["semi1"].match_id)
        assert semi_match is not None
        assert semi_match.creator_id is None

    async with SessionLocal.begin() as session:
        details = await get_tournament_details(
            session,
            tournament_code=tournament_code,
            user_id=user_ids[2],
        )
    assert sorted(details.participant_ids) == sorted(user_ids)
    assert {item.round for item in details.matches} == {"semi1", "semi2"}


@pytest.mark.asyncio
@pytest.mark.parametrize("first_round", ["semi1", "semi2"])
async def test_final_is_created_once_whichever_semifinal_ends_last(first_round: str) -> None:
    tournament_code, tournament_id, user_ids = await _start_full_tournament()
    creator_id = user_ids[0]
    rows = await _bracket_rows(tournament_id)
    second_round = "semi2" if first_round == "semi1" else "semi1"

    await _win_match(rows[first_round], winner_id=rows[first_round].player1_id)
    assert "final" not in await _bracket_rows(tournament_id)

    await _win_match(rows[second_round], winner_id=rows[second_round].player2_id)
    rows = await _bracket_rows(tournament_id)
    final = rows["final"]
    assert final.status == "active"
    assert final.player1_id == rows["semi1"].winner_id
    assert final.player2_id == rows["semi2"].winner_id
    assert await _match_status(final.match_id) == "active"

    async with SessionLocal.begin() as session:
        tournament = await TournamentsRepo.get_by_id(session, tournament_id)
        assert tournament is not None
        assert await _match_question_ids(final.match_id) == [
            UUID(item) for item in tournament.final_question_ids or []
        ]

    # A replayed semifinal completion must not open a second final.
    async with SessionLocal.begin() as session:
        follow_ups = await handle_bracket_match_completed(
            session,
            event=MatchCompleted(
                match_id=rows[first_round].match_id,
                creator_id=None,
                player1_id=rows[first_round].player1_id,
                player2_id=rows[first_round].player2_id,
                winner_id=rows[first_round].player1_id,
                is_draw=False,
                completed_at=NOW_UTC,
                tournament_id=tournament_id,
            ),
            now_utc=NOW_UTC,
        )
    assert follow_ups == []
    assert (await _bracket_rows(tournament_id))["final"].match_id == final.match_id

    for user_id in user_ids:
        assert (await _get_profile(user_id)).points == 0

    champion_id = final.player1_id
    await _win_match(final, winner_id=champion_id)

    async with SessionLocal.begin() as session:
        results = await get_tournament_results(session, tournament_code=tournament_code)
    assert results.snapshot.status == "completed"
    assert results.snapshot.winner_id == champion_id
    assert results.runner_up_id == final.player2_id

    expected_points = {user_id: 0 for user_id in user_ids}
    expected_points[champion_id] += 10
    expected_points[creator_id] += 4
    for user_id, points in expected_points.items():
        assert (await _get_profile(user_id)).points == points

    async with SessionLocal.begin() as session:
        history = await list_user_tournament_history(session, user_id=champion_id)
        ref = await get_tournament_match_for_match(session, match_id=final.match_id)
    assert [item.is_winner for item in history] == [True]
    assert ref is not None
    assert ref.round == "final"
    assert ref.tournament_code == tournament_code


@pytest.mark.asyncio
async def test_drawn_semifinal_advances_the_player_who_finished_first() -> None:
    _, tournament_id, _ = await _start_full_tournament()
    semi1 = (await _bracket_rows(tournament_id))["semi1"]

    await _play_all(semi1.match_id, semi1.player2_id, correct=3, seconds_each=12, now_utc=NOW_UTC)
    await _play_all(
        semi1.match_id,
        semi1.player1_id,
        correct=3,
        seconds_each=12,
        now_utc=NOW_UTC + timedelta(minutes=30),
    )

    semi1 = (await _bracket_rows(tournament_id))["semi1"]
    assert semi1.status == "completed"
    assert semi1.winner_id == semi1.player2_id


@pytest.mark.asyncio
async def test_drawn_final_completes_without_winner() -> None:
    tournament_code, tournament_id, user_ids = await _start_full_tournament()
    rows = await _bracket_rows(tournament_id)
    await _win_match(rows["semi1"], winner_id=rows["semi1"].player1_id)
    await _win_match(rows["semi2"], winner_id=rows["semi2"].player1_id)
    final = (await _bracket_rows(tournament_id))["final"]

    await _play_all(final.match_id, final.player1_id, correct=2, seconds_each=9)
    await _play_all(final.match_id, final.player2_id, correct=2, seconds_each=9)

    async with SessionLocal.begin() as session:
        results = await get_tournament_results(session, tournament_code=tournament_code)
    assert results.snapshot.status == "completed"
    assert results.snapshot.winner_id is None
    assert results.runner_up_id is None
    assert (await _get_profile(user_ids[0])).points == 4
    for user_id in user_ids[1:]:
        assert (await _get_profile(user_id)).points == 0


@pytest.mark.asyncio
async def test_join_tournament_errors() -> None:
    await _seed_questions(10)
    user_ids = [await _create_user(f"player-{idx}") for idx in range(6)]
    async with SessionLocal.begin() as session:
        snapshot = await create_tournament(session, user_id=user_ids[0], now_utc=NOW_UTC)

    with pytest.raises(AlreadyJoinedError):
        async with SessionLocal.begin() as session:
            await join_tournament(
                session,
                tournament_code=snapshot.tournament_code,
                user_id=user_ids[0],
                now_utc=NOW_UTC,
            )

    with pytest.raises(ExpiredError):
        async with SessionLocal.begin() as session:
            await join_tournament(
                session,
                tournament_code=snapshot.tournament_code,
                user_id=user_ids[1],
                now_utc=NOW_UTC + timedelta(hours=25),
            )

    with pytest.raises(NotFoundError):
        async with SessionLocal.begin() as session:
            await join_tournament(
                session,
                tournament_code="tournament_missing",
                user_id=user_ids[1],
                now_utc=NOW_UTC,
            )

    async with SessionLocal.begin() as session:
        lobby = await list_waiting_tournaments(session, user_id=user_ids[1], now_utc=NOW_UTC)
    assert [item.tournament_code for item in lobby] == [snapshot.tournament_code]

    for user_id in user_ids[1:4]:
        async with SessionLocal.begin() as session:
            await join_tournament(
                session,
                tournament_code=snapshot.tournament_code,
                user_id=user_id,
                now_utc=NOW_UTC,
            )

    with pytest.raises(InvalidStateError):
        async with SessionLocal.begin() as session:
            await join_tournament(
                session,
                tournament_code=snapshot.tournament_code,
                user_id=user_ids[4],
                now_utc=NOW_UTC,
            )

    async with SessionLocal.begin() as session:
        mine = await list_user_tournaments(session, user_id=user_ids[2])
    assert [item.status for item in mine] == ["active"]


@pytest.mark.asyncio
async def test_cancel_tournament_stops_bracket_matches() -> None:
    tournament_code, tournament_id, user_ids = await _start_full_tournament()
    outsider_id = await _create_user("outsider")

    with pytest.raises(UnauthorizedError):
        async with SessionLocal.begin() as session:
            await cancel_tournament(
                session,
                tournament_code=tournament_code,
                by_user_id=outsider_id,
                now_utc=NOW_UTC,
            )

    async with SessionLocal.begin() as session:
        snapshot = await cancel_tournament(
            session,
            tournament_code=tournament_code,
            by_user_id=user_ids[0],
            now_utc=NOW_UTC + timedelta(hours=1),
        )
    assert snapshot.status == "cancelled"

    for row in (await _bracket_rows(tournament_id)).values():
        assert row.status == "cancelled"
        assert await _match_status(row.match_id) == "cancelled"
        assert await _participant_ids(row.match_id) == []

    with pytest.raises(InvalidStateError):
        async with SessionLocal.begin() as session:
            await cancel_tournament(
                session,
                tournament_code=tournament_code,
                by_user_id=user_ids[0],
                now_utc=NOW_UTC + timedelta(hours=2),
            )


@pytest.mark.asyncio
async def test_admin_may_cancel_and_last_leaver_cancels_waiting_tournament() -> None:
    await _seed_questions(5)
    creator_id = await _create_user("creator")
    guest_id = await _create_user("guest")
    admin_id = await _create_user("admin", is_admin=True)

    async with SessionLocal.begin() as session:
        first = await create_tournament(session, user_id=creator_id, now_utc=NOW_UTC)
    async with SessionLocal.begin() as session:
        cancelled = await cancel_tournament(
            session,
            tournament_code=first.tournament_code,
            by_user_id=admin_id,
            now_utc=NOW_UTC,
        )
    assert cancelled.status == "cancelled"

    async with SessionLocal.begin() as session:
        second = await create_tournament(
            session,
            user_id=creator_id,
            now_utc=NOW_UTC + timedelta(minutes=1),
        )
    async with SessionLocal.begin() as session:
        await join_tournament(
            session,
            tournament_code=second.tournament_code,
            user_id=guest_id,
            now_utc=NOW_UTC + timedelta(minutes=2),
        )

    with pytest.raises(NotFoundError):
        async with SessionLocal.begin() as session:
            await leave_tournament(
                session,
                tournament_code=second.tournament_code,
                user_id=admin_id,
                now_utc=NOW_UTC + timedelta(minutes=3),
            )

    async with SessionLocal.begin() as session:
        after_creator = await leave_tournament(
            session,
            tournament_code=second.tournament_code,
            user_id=creator_id,
            now_utc=NOW_UTC + timedelta(minutes=3),
        )
    assert after_creator.status == "waiting"

    async with SessionLocal.begin() as session:
        after_guest = await leave_tournament(
            session,
            tournament_code=second.tournament_code,
            user_id=guest_id,
            now_utc=NOW_UTC + timedelta(minutes=4),
        )
    assert after_guest.status == "cancelled"


def _record_row_locks(monkeypatch) -> list[tuple[str, UUID]]:
    calls: list[tuple[str, UUID]] = []
    lock_match = MatchesRepo.get_by_id_for_update
    lock_tournament = TournamentsRepo.get_by_id_for_update

    async def recording_lock_match(session, match_id):
        calls.append(("match", match_id))
        return await lock_match(session, match_id)

    async def recording_lock_tournament(session, tournament_id):
        calls.append(("tournament", tournament_id))
        return await lock_tournament(session, tournament_id)

    monkeypatch.setattr(MatchesRepo, "get_by_id_for_update", staticmethod(recording_lock_match))
    monkeypatch.setattr(
        TournamentsRepo,
        "get_by_id_for_update",
        staticmethod(recording_lock_tournament),
    )
    return calls


def _assert_matches_locked_before_tournament(
    calls: list[tuple[str, UUID]],
    match_ids: list[UUID],
) -> None:
    first_tournament_lock = next(idx for idx, call in enumerate(calls) if call[0] == "tournament")
    locked_before = {item_id for kind, item_id in calls[:first_tournament_lock] if kind == "match"}
    assert set(match_ids).issubset(locked_before)


@pytest.mark.asyncio
async def test_cancel_tournament_locks_bracket_matches_before_tournament(monkeypatch) -> None:
    tournament_code, tournament_id, user_ids = await _start_full_tournament()
    match_ids = [row.match_id for row in (await _bracket_rows(tournament_id)).values()]
    calls = _record_row_locks(monkeypatch)

    async with SessionLocal.begin() as session:
        await cancel_tournament(
            session,
            tournament_code=tournament_code,
            by_user_id=user_ids[0],
            now_utc=NOW_UTC + timedelta(hours=1),
        )

    _assert_matches_locked_before_tournament(calls, match_ids)


@pytest.mark.asyncio
async def test_cancelled_bracket_match_locks_siblings_before_tournament(monkeypatch) -> None:
    _, tournament_id, _ = await _start_full_tournament()
    admin_id = await _create_user("admin", is_admin=True)
    rows = await _bracket_rows(tournament_id)
    match_ids = [row.match_id for row in rows.values()]
    calls = _record_row_locks(monkeypatch)

    async with SessionLocal.begin() as session:
        await cancel_match(
            session,
            match_id=rows["semi1"].match_id,
            by_user_id=admin_id,
            now_utc=NOW_UTC + timedelta(hours=1),
        )

    assert calls[0] == ("match", rows["semi1"].match_id)
    _assert_matches_locked_before_tournament(calls, match_ids)
    assert await _match_status(rows["semi2"].match_id) == "cancelled"
