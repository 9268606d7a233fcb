from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ProfileSnapshot:
    user_id: int
    name: str
    referral_code: str
    points: int
    correct_answers_total: int


@dataclass(slots=True)
class ProfileStats:
    total_games: int
    total_wins: int
    total_draws: int
    total_losses: int


@dataclass(slots=True)
class LeaderboardEntry:
    rank: int
    user_id: int
    name: str
    points: int
    correct_answers_total: int
