from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(slots=True, frozen=True)
class MatchCompleted:
    match_id: UUID
    creator_id: int | None
    player1_id: int
    player2_id: int
    winner_id: int | None
    is_draw: bool
    completed_at: datetime
    tournament_id: UUID | None = None


@dataclass(slots=True, frozen=True)
class SemifinalResolved:
    tournament_id: UUID
    round: str
    match_id: UUID
    winner_id: int
    resolved_by_tie_break: bool
    final_match_id: UUID | None
    resolved_at: datetime


@dataclass(slots=True, frozen=True)
class TournamentCompleted:
    tournament_id: UUID
    creator_id: int
    winner_id: int | None
    completed_at: datetime


DomainEvent = MatchCompleted | SemifinalResolved | TournamentCompleted
