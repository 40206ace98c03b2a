from __future__ import annotations

import hashlib
import hmac
import secrets

from taskhub.domain.ports import PasswordHasher


class Pbkdf2Hasher(PasswordHasher):
    """Salted PBKDF2-SHA256. Stored as `pbkdf2_sha256$<iterations>$<salt>$<hex digest>`."""

    ALGORITHM = "pbkdf2_sha256"

    def __init__(self, iterations: int = 260_000) -> None:
        self._iterations = iterations

    def hash(self, password: str) -> str:
        salt = secrets.token_hex(16)
        digest = self._digest(password, salt, self._iterations)
        return f"{self.ALGORITHM}${self._iterations}${salt}${digest}"

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            algorithm, iterations, salt, expected = password_hash.split("$")
            rounds = int(iterations)
        except ValueError:
            return False
        if algorithm != self.ALGORITHM:
            return False
        return hmac.compare_digest(self._digest(password, salt, rounds), expected)

    @staticmethod
    def _digest(password: str, salt: str, iterations: int) -> str:
        return hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations
        ).hex()
