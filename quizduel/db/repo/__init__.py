from quizduel.db.repo.analytics_repo import AnalyticsRepo
from quizduel.db.repo.categories_repo import CategoriesRepo
from quizduel.db.repo.match_answers_repo import MatchAnswersRepo
from quizduel.db.repo.match_participants_repo import MatchParticipantsRepo
from quizduel.db.repo.match_results_repo import MatchResultsRepo
from quizduel.db.repo.matches_repo import MatchesRepo
from quizduel.db.repo.profiles_repo import ProfilesRepo
from quizduel.db.repo.purchases_repo import PurchasesRepo
from quizduel.db.repo.question_answers_repo import QuestionAnswersRepo
from quizduel.db.repo.questions_repo import QuestionsRepo
from quizduel.db.repo.tournament_matches_repo import TournamentMatchesRepo
from quizduel.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from quizduel.db.repo.tournaments_repo import TournamentsRepo

__all__ = [
    "AnalyticsRepo",
    "CategoriesRepo",
    "MatchAnswersRepo",
    "MatchParticipantsRepo",
    "MatchResultsRepo",
    "MatchesRepo",
    "ProfilesRepo",
    "PurchasesRepo",
    "QuestionAnswersRepo",
    "QuestionsRepo",
    "TournamentMatchesRepo",
    "TournamentParticipantsRepo",
    "TournamentsRepo",
]
