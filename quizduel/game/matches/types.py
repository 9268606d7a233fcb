from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from quizduel.game.questions.types import PublicQuestion, ReviewedQuestion


@dataclass(slots=True)
class MatchSnapshot:
    match_id: UUID
    status: str
    creator_id: int | None
    category_id: int | None
    is_private: bool
    join_code: str | None
    question_ids: list[UUID]
    current_question_index: int | None
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None
    expires_at: datetime


@dataclass(slots=True)
class MatchJoinResult:
    snapshot: MatchSnapshot
    created_now: bool = False


@dataclass(slots=True, frozen=True)
class AnswerResult:
    is_correct: bool
    user_completed: bool
    match_completed: bool


@dataclass(slots=True)
class ParticipantView:
    user_id: int
    joined_at: datetime
    answered_count: int
    completed_at: datetime | None
    total_score: int | None
    total_time: int | None


@dataclass(slots=True)
class MatchDetails:
    snapshot: MatchSnapshot
    participants: list[ParticipantView]
    questions: list[PublicQuestion]


@dataclass(slots=True, frozen=True)
class AnswerView:
    question_id: UUID
    position: int
    selected_answer: int
    time_spent: int
    is_correct: bool


@dataclass(slots=True)
class MatchResultView:
    match_id: UUID
    player1_id: int
    player1_score: int
    player1_time: int
    player2_id: int
    player2_score: int
    player2_time: int
    winner_id: int | None
    is_draw: bool
    completed_at: datetime


@dataclass(slots=True)
class MatchResults:
    snapshot: MatchSnapshot
    result: MatchResultView
    questions: list[ReviewedQuestion]
    answers: dict[int, list[AnswerView]] = field(default_factory=dict)


@dataclass(slots=True)
class PartialMatchResults:
    snapshot: MatchSnapshot
    participants: list[ParticipantView]
    result: MatchResultView | None
    questions: list[ReviewedQuestion | PublicQuestion]
    answers: dict[int, list[AnswerView]] | None


@dataclass(slots=True)
class MatchHistoryItem:
    match_id: UUID
    opponent_id: int | None
    user_score: int
    opponent_score: int
    winner_id: int | None
    is_draw: bool
    completed_at: datetime
    tournament_id: UUID | None


@dataclass(slots=True, frozen=True)
class ActiveMatchRef:
    match_id: UUID
    status: str


@dataclass(slots=True)
class ExpirySweepResult:
    matches_examined: int = 0
    matches_cancelled: int = 0
    matches_failed: int = 0
    tournaments_cancelled: int = 0

    def as_log_fields(self) -> dict[str, int]:
        return {
            "matches_examined": self.matches_examined,
            "matches_cancelled": self.matches_cancelled,
            "matches_failed": self.matches_failed,
            "tournaments_cancelled": self.tournaments_cancelled,
        }
