"""
Password policy and local hashing.

The identity provider stores real credentials; bcrypt hashes exist only
for seed (fixture) accounts.
"""

import logging
import re

import bcrypt

from .exceptions import WeakPasswordError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 100
SPECIAL_CHARACTERS = "@$!%*?&"

_STRENGTH_RULES = [
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"\d"), "one digit"),
    (re.compile(f"[{re.escape(SPECIAL_CHARACTERS)}]"), f"one special character ({SPECIAL_CHARACTERS})"),
]


def validate_password_strength(password: str) -> None:
    """
    Raises:
        WeakPasswordError: Listing every rule the password misses.
    """
    missing = []
    if not password or len(password) < MIN_PASSWORD_LENGTH or len(password) > MAX_PASSWORD_LENGTH:
        missing.append(f"between {MIN_PASSWORD_LENGTH} and {MAX_PASSWORD_LENGTH} characters")
    for pattern, description in _STRENGTH_RULES:
        if not pattern.search(password or ""):
            missing.append(description)

    if missing:
        raise WeakPasswordError(f"Password must contain {', '.join(missing)}")


class PasswordHasher:
    """bcrypt hashing with an embedded salt."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.warning(f"Stored password hash is malformed: {e}")
            return False
