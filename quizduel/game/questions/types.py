from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(slots=True, frozen=True)
class PublicQuestion:
    question_id: UUID
    position: int
    question_text: str
    options: tuple[str, str, str, str]
    time_to_respond: int
    grade: int
    media_path: str | None


@dataclass(slots=True, frozen=True)
class ReviewedQuestion:
    question: PublicQuestion
    correct_option: int
