from __future__ import annotations

from enum import Enum

from quizduel.game.errors import InvalidStateError

MATCH_CAPACITY = 2
JOIN_CODE_LENGTH = 6
JOIN_CODE_MAX_ATTEMPTS = 10


class MatchStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


MATCH_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
    MatchStatus.WAITING: frozenset({MatchStatus.ACTIVE, MatchStatus.CANCELLED}),
    MatchStatus.ACTIVE: frozenset({MatchStatus.COMPLETED, MatchStatus.CANCELLED}),
    MatchStatus.COMPLETED: frozenset(),
    MatchStatus.CANCELLED: frozenset(),
}

# Raw values: enum members hash by name and would miss column strings.
MATCH_OPEN_STATUSES = frozenset({MatchStatus.WAITING.value, MatchStatus.ACTIVE.value})
MATCH_TERMINAL_STATUSES = frozenset({MatchStatus.COMPLETED.value, MatchStatus.CANCELLED.value})


def can_transition_match(current: str, target: MatchStatus) -> bool:
    return target in MATCH_TRANSITIONS[MatchStatus(current)]


def ensure_match_transition(current: str, target: MatchStatus) -> str:
    if not can_transition_match(current, target):
        raise InvalidStateError(f"match cannot move from {current} to {target.value}")
    return target.value
