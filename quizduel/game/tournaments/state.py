from __future__ import annotations

from enum import Enum

from quizduel.game.errors import InvalidStateError

TOURNAMENT_CAPACITY = 4
TOURNAMENT_CODE_MAX_ATTEMPTS = 10


class TournamentStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TournamentMatchStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TournamentRound(str, Enum):
    SEMI1 = "semi1"
    SEMI2 = "semi2"
    FINAL = "final"


SEMIFINAL_ROUNDS = (TournamentRound.SEMI1, TournamentRound.SEMI2)

TOURNAMENT_TRANSITIONS: dict[TournamentStatus, frozenset[TournamentStatus]] = {
    TournamentStatus.WAITING: frozenset({TournamentStatus.ACTIVE, TournamentStatus.CANCELLED}),
    TournamentStatus.ACTIVE: frozenset({TournamentStatus.COMPLETED, TournamentStatus.CANCELLED}),
    TournamentStatus.COMPLETED: frozenset(),
    TournamentStatus.CANCELLED: frozenset(),
}

TOURNAMENT_MATCH_TRANSITIONS: dict[TournamentMatchStatus, frozenset[TournamentMatchStatus]] = {
    TournamentMatchStatus.ACTIVE: frozenset(
        {TournamentMatchStatus.COMPLETED, TournamentMatchStatus.CANCELLED}
    ),
    TournamentMatchStatus.COMPLETED: frozenset(),
    TournamentMatchStatus.CANCELLED: frozenset(),
}


def ensure_tournament_transition(current: str, target: TournamentStatus) -> str:
    if target not in TOURNAMENT_TRANSITIONS[TournamentStatus(current)]:
        raise InvalidStateError(f"tournament cannot move from {current} to {target.value}")
    return target.value


def ensure_tournament_match_transition(current: str, target: TournamentMatchStatus) -> str:
    if target not in TOURNAMENT_MATCH_TRANSITIONS[TournamentMatchStatus(current)]:
        raise InvalidStateError(f"tournament match cannot move from {current} to {target.value}")
    return target.value
