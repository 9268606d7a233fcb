from __future__ import annotations

import pytest

from quizduel.game.errors import InvalidStateError
from quizduel.game.matches.state import (
    MATCH_OPEN_STATUSES,
    MATCH_TERMINAL_STATUSES,
    MatchStatus,
    can_transition_match,
    ensure_match_transition,
)
from quizduel.game.tournaments.state import (
    TournamentMatchStatus,
    TournamentStatus,
    ensure_tournament_match_transition,
    ensure_tournament_transition,
)


@pytest.mark.parametrize(
    ("current", "target"),
    [
        ("waiting", MatchStatus.ACTIVE),
        ("waiting", MatchStatus.CANCELLED),
        ("active", MatchStatus.COMPLETED),
        ("active", MatchStatus.CANCELLED),
    ],
)
def test_allowed_match_transitions_return_column_value(current: str, target: MatchStatus) -> None:
    assert ensure_match_transition(current, target) == target.value


@pytest.mark.parametrize(
    ("current", "target"),
    [
        ("waiting", MatchStatus.COMPLETED),
        ("completed", MatchStatus.CANCELLED),
        ("cancelled", MatchStatus.ACTIVE),
        ("active", MatchStatus.WAITING),
    ],
)
def test_forbidden_match_transitions_raise(current: str, target: MatchStatus) -> None:
    assert can_transition_match(current, target) is False
    with pytest.raises(InvalidStateError):
        ensure_match_transition(current, target)


def test_status_sets_match_raw_column_strings() -> None:
    assert "waiting" in MATCH_OPEN_STATUSES
    assert "active" in MATCH_OPEN_STATUSES
    assert MATCH_TERMINAL_STATUSES == {"completed", "cancelled"}
    assert MATCH_OPEN_STATUSES.isdisjoint(MATCH_TERMINAL_STATUSES)


def test_tournament_transitions() -> None:
    assert ensure_tournament_transition("waiting", TournamentStatus.ACTIVE) == "active"
    assert ensure_tournament_transition("active", TournamentStatus.COMPLETED) == "completed"
    with pytest.raises(InvalidStateError):
        ensure_tournament_transition("completed", TournamentStatus.CANCELLED)
    with pytest.raises(InvalidStateError):
        ensure_tournament_transition("waiting", TournamentStatus.COMPLETED)


def test_tournament_match_rows_are_final_once_settled() -> None:
    assert ensure_tournament_match_transition("active", TournamentMatchStatus.CANCELLED) == "cancelled"
    with pytest.raises(InvalidStateError):
        ensure_tournament_match_transition("completed", TournamentMatchStatus.CANCELLED)
