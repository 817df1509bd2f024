from __future__ import annotations

from collections.abc import Callable

from passlib.hash import bcrypt

"""One-way password hashing for imported user records (passlib bcrypt)."""

DEFAULT_ROUNDS = 12


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def make_password_hasher(rounds: int = DEFAULT_ROUNDS) -> Callable[[str], str]:
    """Return a hash function bound to the given bcrypt cost factor."""
    return bcrypt.using(rounds=rounds).hash
