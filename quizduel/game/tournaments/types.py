from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(slots=True)
class TournamentSnapshot:
    tournament_id: UUID
    tournament_code: str
    status: str
    creator_id: int
    category_id: int | None
    winner_id: int | None
    created_at: datetime
    expires_at: datetime
    started_at: datetime | None
    completed_at: datetime | None


@dataclass(slots=True)
class TournamentJoinResult:
    snapshot: TournamentSnapshot
    participants_total: int
    bracket_started: bool


@dataclass(slots=True, frozen=True)
class TournamentMatchView:
    round: str
    match_id: UUID
    player1_id: int
    player2_id: int
    status: str
    winner_id: int | None


@dataclass(slots=True)
class TournamentDetails:
    snapshot: TournamentSnapshot
    participant_ids: list[int]
    matches: list[TournamentMatchView]


@dataclass(slots=True)
class TournamentResults:
    snapshot: TournamentSnapshot
    matches: list[TournamentMatchView]
    runner_up_id: int | None


@dataclass(slots=True)
class TournamentHistoryItem:
    tournament_id: UUID
    tournament_code: str
    winner_id: int | None
    is_winner: bool
    completed_at: datetime | None


@dataclass(slots=True, frozen=True)
class TournamentMatchRef:
    tournament_id: UUID
    tournament_code: str
    round: str
    status: str
