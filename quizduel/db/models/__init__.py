from quizduel.db.models.analytics_events import AnalyticsEvent
from quizduel.db.models.categories import Category
from quizduel.db.models.match_answers import MatchAnswer
from quizduel.db.models.match_participants import MatchParticipant
from quizduel.db.models.match_results import MatchResult
from quizduel.db.models.matches import Match
from quizduel.db.models.profiles import Profile
from quizduel.db.models.purchases import Purchase
from quizduel.db.models.question_answers import QuestionAnswer
from quizduel.db.models.question_categories import QuestionCategory
from quizduel.db.models.questions import Question
from quizduel.db.models.store_items import StoreItem
from quizduel.db.models.tournament_matches import TournamentMatch
from quizduel.db.models.tournament_participants import TournamentParticipant
from quizduel.db.models.tournaments import Tournament

__all__ = [
    "AnalyticsEvent",
    "Category",
    "Match",
    "MatchAnswer",
    "MatchParticipant",
    "MatchResult",
    "Profile",
    "Purchase",
    "Question",
    "QuestionAnswer",
    "QuestionCategory",
    "StoreItem",
    "Tournament",
    "TournamentMatch",
    "TournamentParticipant",
]
