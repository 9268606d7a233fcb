from quizduel.game.matches.create_join import create_match, join_match, quick_play
from quizduel.game.matches.expiry import expire_due_matches, expire_match
from quizduel.game.matches.gameplay import submit_answer
from quizduel.game.matches.manage import cancel_match, leave_match
from quizduel.game.matches.queries import (
    get_active_match_for_user,
    get_match_details,
    get_match_results,
    get_match_results_partial,
    list_open_matches,
    list_user_match_history,
)

__all__ = [
    "cancel_match",
    "create_match",
    "expire_due_matches",
    "expire_match",
    "get_active_match_for_user",
    "get_match_details",
    "get_match_results",
    "get_match_results_partial",
    "join_match",
    "leave_match",
    "list_open_matches",
    "list_user_match_history",
    "quick_play",
    "submit_answer",
]
