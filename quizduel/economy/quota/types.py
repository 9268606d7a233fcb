from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class QuotaKind(str, Enum):
    MATCH = "match"
    TOURNAMENT = "tournament"


@dataclass(slots=True, frozen=True)
class QuotaSnapshot:
    kind: QuotaKind
    used: int
    limit: int
    reset_at: datetime | None

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)
