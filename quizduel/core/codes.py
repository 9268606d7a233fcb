from __future__ import annotations

import secrets

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_short_code(length: int = 6) -> str:
    """Generates a short uppercase code without the look-alike characters 0/O and 1/I."""
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def generate_tournament_code() -> str:
    return f"tournament_{secrets.token_hex(8)}"
