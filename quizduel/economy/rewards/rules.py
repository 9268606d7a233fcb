from __future__ import annotations

from dataclasses import dataclass

from quizduel.game.events import MatchCompleted, TournamentCompleted

MATCH_WIN_POINTS = 5
MATCH_CREATOR_POINTS = 2
TOURNAMENT_WIN_POINTS = 10
TOURNAMENT_CREATOR_POINTS = 4
REFERRAL_OWNER_POINTS = 5
REFERRAL_SIGNEE_POINTS = 2


@dataclass(slots=True, frozen=True)
class PointsGrant:
    user_id: int
    amount: int
    reason: str


def grants_for_match_completed(event: MatchCompleted) -> list[PointsGrant]:
    # Bracket matches pay out through the tournament instead.
    if event.tournament_id is not None:
        return []
    grants: list[PointsGrant] = []
    if event.winner_id is not None and not event.is_draw:
        grants.append(PointsGrant(user_id=event.winner_id, amount=MATCH_WIN_POINTS, reason="match_win"))
    if event.creator_id is not None:
        grants.append(
            PointsGrant(user_id=event.creator_id, amount=MATCH_CREATOR_POINTS, reason="match_creator")
        )
    return grants


def grants_for_tournament_completed(event: TournamentCompleted) -> list[PointsGrant]:
    grants: list[PointsGrant] = []
    if event.winner_id is not None:
        grants.append(
            PointsGrant(user_id=event.winner_id, amount=TOURNAMENT_WIN_POINTS, reason="tournament_win")
        )
    grants.append(
        PointsGrant(
            user_id=event.creator_id,
            amount=TOURNAMENT_CREATOR_POINTS,
            reason="tournament_creator",
        )
    )
    return grants


def grants_for_referral(*, owner_id: int, signee_id: int) -> list[PointsGrant]:
    return [
        PointsGrant(user_id=owner_id, amount=REFERRAL_OWNER_POINTS, reason="referral_owner"),
        PointsGrant(user_id=signee_id, amount=REFERRAL_SIGNEE_POINTS, reason="referral_signee"),
    ]
