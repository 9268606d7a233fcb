from __future__ import annotations

from sqlalchemy import CheckConstraint, UniqueConstraint

from quizduel.db.models import (  # noqa: F401
    AnalyticsEvent,
    Category,
    Match,
    MatchAnswer,
    MatchParticipant,
    MatchResult,
    Profile,
    Purchase,
    Question,
    QuestionAnswer,
    QuestionCategory,
    StoreItem,
    Tournament,
    TournamentMatch,
    TournamentParticipant,
)
from quizduel.db.models.base import Base


def _check_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {constraint.name for constraint in table.constraints if isinstance(constraint, CheckConstraint)}


def _unique_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {constraint.name for constraint in table.constraints if isinstance(constraint, UniqueConstraint)}


def test_all_tables_registered() -> None:
    expected_tables = {
        "profiles",
        "categories",
        "questions",
        "question_categories",
        "question_answers",
        "matches",
        "match_participants",
        "match_answers",
        "match_results",
        "tournaments",
        "tournament_participants",
        "tournament_matches",
        "store_items",
        "purchases",
        "analytics_events",
    }
    assert expected_tables.issubset(set(Base.metadata.tables))


def test_answer_key_lives_outside_questions_table() -> None:
    question_columns = set(Base.metadata.tables["questions"].columns.keys())
    assert "correct_option" not in question_columns
    assert "correct_option" in Base.metadata.tables["question_answers"].columns


def test_critical_constraints_present() -> None:
    assert "uq_match_answers_match_user_question" in _unique_names("match_answers")
    assert "ck_match_answers_selected_answer_range" in _check_names("match_answers")
    assert "ck_match_answers_time_spent_non_negative" in _check_names("match_answers")

    assert "uq_tournament_matches_tournament_round" in _unique_names("tournament_matches")
    assert "ck_tournament_matches_round" in _check_names("tournament_matches")

    assert "ck_matches_status" in _check_names("matches")
    assert "ck_tournaments_status" in _check_names("tournaments")
    assert "ck_match_results_winner_or_draw" in _check_names("match_results")

    matches_indexes = {index.name for index in Base.metadata.tables["matches"].indexes}
    assert "idx_matches_status_expires" in matches_indexes


def test_participant_tables_use_composite_keys() -> None:
    match_participants = Base.metadata.tables["match_participants"]
    assert {column.name for column in match_participants.primary_key.columns} == {"match_id", "user_id"}

    tournament_participants = Base.metadata.tables["tournament_participants"]
    assert {column.name for column in tournament_participants.primary_key.columns} == {
        "tournament_id",
        "user_id",
    }
