"""
Token service: access/refresh token issuance, verification and rotation.

Access tokens carry the user's identity claims and are signed with the access
secret. Refresh tokens carry only the user id, are signed with a separate
secret and live longer. The latest refresh token is stored on the user so that
a token presented after rotation (reuse) is rejected.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.core.errors import NotFoundError, UnauthorizedError
from app.core.security import PasswordHasher, password_hasher
from app.models import User
from app.schemas import TokenPair
from app.services.credential_store import CredentialStore, credential_store

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenService:
    """Issue, verify and rotate tokens; hash and verify passwords."""

    def __init__(self, settings: Settings, store: CredentialStore, hasher: PasswordHasher):
        self.settings = settings
        self.store = store
        self.hasher = hasher

    # Passwords

    def hash_password(self, plaintext: str) -> str:
        return self.hasher.hash(plaintext)

    def verify_password(self, plaintext: str, hashed: str) -> bool:
        return self.hasher.verify(plaintext, hashed)

    # Issuance

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.access_token_expire_minutes)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self.settings.refresh_token_expire_days)

    def _encode(self, claims: Dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": now,
            "exp": now + ttl,
            # Distinguishes tokens minted for the same user in the same second.
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self.settings.jwt_algorithm)

    def issue_access_token(self, user: User) -> str:
        """Signed, short-lived token with the user's identity claims."""
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "username": user.username,
            "full_name": user.full_name,
            "type": ACCESS_TOKEN_TYPE,
        }
        return self._encode(claims, self.settings.access_token_secret, self.access_token_ttl)

    def issue_refresh_token(self, user: User) -> str:
        """Signed, long-lived token carrying only the user id."""
        claims = {"sub": str(user.id), "type": REFRESH_TOKEN_TYPE}
        return self._encode(claims, self.settings.refresh_token_secret, self.refresh_token_ttl)

    # Verification

    def _decode(self, token: str, secret: str, expected_type: str) -> Dict[str, Any]:
        if not token:
            raise UnauthorizedError("Token is required")
        try:
            claims = jwt.decode(token, secret, algorithms=[self.settings.jwt_algorithm])
        except ExpiredSignatureError as exc:
            raise UnauthorizedError("Token has expired") from exc
        except JWTError as exc:
            raise UnauthorizedError("Invalid token") from exc

        if claims.get("type") != expected_type:
            raise UnauthorizedError("Invalid token type")
        return claims

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self.settings.access_token_secret, ACCESS_TOKEN_TYPE)

    def decode_refresh_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self.settings.refresh_token_secret, REFRESH_TOKEN_TYPE)

    @staticmethod
    def subject_id(claims: Dict[str, Any]) -> uuid.UUID:
        """Extract the user id from decoded claims."""
        try:
            return uuid.UUID(str(claims.get("sub")))
        except ValueError as exc:
            raise UnauthorizedError("Invalid token subject") from exc

    # Lifecycle

    def rotate_tokens(self, db: Session, user_id: uuid.UUID) -> TokenPair:
        """
        Issue a fresh token pair and persist the new refresh token.

        Raises:
            NotFoundError: the user no longer exists
            InternalError: the refresh token could not be stored
        """
        user = self.store.find_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        access_token = self.issue_access_token(user)
        refresh_token = self.issue_refresh_token(user)
        self.store.set_refresh_token(db, user.id, refresh_token)

        logger.info(f"Issued new token pair for user {user.id}")
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def refresh(self, db: Session, presented_refresh_token: str) -> TokenPair:
        """
        Exchange a valid, current refresh token for a new pair.

        Raises:
            UnauthorizedError: invalid/expired token, unknown user, or the
                token is not the one currently stored (already rotated)
        """
        claims = self.decode_refresh_token(presented_refresh_token)
        user = self.store.find_by_id(db, self.subject_id(claims))
        if not user:
            raise UnauthorizedError("Invalid refresh token")

        if user.refresh_token is None or presented_refresh_token != user.refresh_token:
            logger.warning(f"Rejected stale or unknown refresh token for user {user.id}")
            raise UnauthorizedError("Refresh token is expired or used")

        access_token = self.issue_access_token(user)
        refresh_token = self.issue_refresh_token(user)
        if not self.store.swap_refresh_token(db, user.id, presented_refresh_token, refresh_token):
            # A concurrent refresh rotated this token first.
            logger.warning(f"Concurrent refresh lost the race for user {user.id}")
            raise UnauthorizedError("Refresh token is expired or used")

        logger.info(f"Rotated tokens for user {user.id}")
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def invalidate(self, db: Session, user_id: uuid.UUID) -> None:
        """End the server-side session by forgetting the refresh token."""
        self.store.clear_refresh_token(db, user_id)
        logger.info(f"Invalidated refresh token for user {user_id}")


# Global token service instance
token_service = TokenService(settings, credential_store, password_hasher)
