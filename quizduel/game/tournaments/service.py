from quizduel.game.tournaments.create_join import create_tournament, join_tournament
from quizduel.game.tournaments.manage import cancel_tournament, leave_tournament
from quizduel.game.tournaments.queries import (
    get_tournament_details,
    get_tournament_match_for_match,
    get_tournament_results,
    list_user_tournament_history,
    list_user_tournaments,
    list_waiting_tournaments,
)

__all__ = [
    "cancel_tournament",
    "create_tournament",
    "get_tournament_details",
    "get_tournament_match_for_match",
    "get_tournament_results",
    "join_tournament",
    "leave_tournament",
    "list_user_tournament_history",
    "list_user_tournaments",
    "list_waiting_tournaments",
]
