"""
Password hashing and verification.
"""
import logging

from passlib.context import CryptContext

from app.core.config import settings

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted bcrypt hashing with a configurable cost factor.

    Input beyond MAX_PASSWORD_BYTES (UTF-8) is ignored by bcrypt, so two
    passwords sharing that prefix verify against each other. Callers accepting
    new passwords reject longer ones with `exceeds_limit`.
    """

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, plaintext: str) -> str:
        """
        Hash a plaintext password.

        Args:
            plaintext: Password as submitted by the user

        Returns:
            bcrypt hash string embedding salt and cost
        """
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, hashed: str) -> bool:
        """
        Check a plaintext password against a stored hash.

        Malformed or empty hashes never verify.
        """
        if not plaintext or not hashed:
            return False
        try:
            return self._context.verify(plaintext, hashed)
        except ValueError:
            logger.warning("Stored password hash could not be parsed")
            return False

    @staticmethod
    def exceeds_limit(plaintext: str) -> bool:
        return len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES

# Global password hasher instance
password_hasher = PasswordHasher(rounds=settings.password_hash_rounds)
