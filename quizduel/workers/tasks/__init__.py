from quizduel.workers.tasks.match_expiry import run_match_expiry_sweep

__all__ = ["run_match_expiry_sweep"]
