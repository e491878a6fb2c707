"""
Credential store: persistence of user records.

Handles:
- Identity normalization (trimmed, lower-cased username/email)
- Uniqueness checks on create and update
- Explicit changesets, hashing the password only when it is being written
- Refresh token persistence, including an atomic compare-and-swap
"""
import logging
import uuid
from typing import Callable, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ConflictError, InternalError, NotFoundError
from app.core.security import password_hasher
from app.models import User
from app.schemas import UserChangeset, UserCreateFields

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = ("username", "email")


def normalize_identity(value: Optional[str]) -> Optional[str]:
    """Trim and lower-case a username or email."""
    if value is None:
        return None
    return value.strip().lower()


class CredentialStore:
    """Reads and writes user records through a SQLAlchemy session."""

    def __init__(self, hash_password: Callable[[str], str]):
        # Before-write transform applied to plaintext passwords.
        self._hash_password = hash_password

    # Reads

    def find_by_id(self, db: Session, user_id: uuid.UUID) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    def find_by_username_or_email(
        self,
        db: Session,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Optional[User]:
        """Return the first user matching either identity, or None."""
        conditions = []
        if username and username.strip():
            conditions.append(User.username == normalize_identity(username))
        if email and email.strip():
            conditions.append(User.email == normalize_identity(email))
        if not conditions:
            return None
        return db.query(User).filter(or_(*conditions)).first()

    # Writes

    def create(self, db: Session, fields: UserCreateFields) -> User:
        """
        Create a user.

        Raises:
            ConflictError: username or email already taken; nothing is written
        """
        username = normalize_identity(fields.username)
        email = normalize_identity(fields.email)

        if self.find_by_username_or_email(db, username=username, email=email):
            raise ConflictError("User with this username or email already exists")

        user = User(
            username=username,
            email=email,
            full_name=fields.full_name.strip(),
            avatar=fields.avatar,
            cover_image=fields.cover_image,
            hashed_password=self._hash_password(fields.password),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration.
            db.rollback()
            raise ConflictError("User with this username or email already exists") from exc
        db.refresh(user)

        logger.info(f"Created user {user.id} ({user.username})")
        return user

    def update_fields(self, db: Session, user_id: uuid.UUID, changeset: UserChangeset) -> User:
        """
        Apply a partial update.

        Only fields set on the changeset are written. The password is hashed
        here, and only when it is part of the changeset.

        Raises:
            NotFoundError: no such user
            ConflictError: new username/email belongs to someone else
        """
        user = self.find_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        changes = changeset.touched()
        if not changes:
            return user

        for field in IDENTITY_FIELDS:
            if field in changes:
                value = normalize_identity(changes[field])
                if not value:
                    raise BadRequestError(f"{field} cannot be empty")
                changes[field] = value

        new_username = changes.get("username")
        new_email = changes.get("email")
        if new_username or new_email:
            clash = self.find_by_username_or_email(db, username=new_username, email=new_email)
            if clash is not None and clash.id != user.id:
                raise ConflictError("Username or email is already taken")

        if "full_name" in changes and changes["full_name"] is not None:
            changes["full_name"] = changes["full_name"].strip()

        if "password" in changes:
            password = changes.pop("password")
            if not password:
                raise BadRequestError("Password cannot be empty")
            changes["hashed_password"] = self._hash_password(password)

        for field, value in changes.items():
            setattr(user, field, value)

        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError("Username or email is already taken") from exc
        db.refresh(user)

        logger.info(f"Updated user {user.id}: {sorted(changes)}")
        return user

    def set_password(self, db: Session, user_id: uuid.UUID, plaintext: str) -> User:
        return self.update_fields(db, user_id, UserChangeset(password=plaintext))

    def set_refresh_token(self, db: Session, user_id: uuid.UUID, refresh_token: Optional[str]) -> None:
        """Unconditionally overwrite the stored refresh token."""
        try:
            updated = (
                db.query(User)
                .filter(User.id == user_id)
                .update({User.refresh_token: refresh_token}, synchronize_session="fetch")
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Failed to persist refresh token for user {user_id}: {exc}")
            raise InternalError("Something went wrong while generating access and refresh tokens") from exc

        if not updated:
            raise NotFoundError("User not found")

    def swap_refresh_token(
        self,
        db: Session,
        user_id: uuid.UUID,
        expected: str,
        new_token: str,
    ) -> bool:
        """
        Replace the stored refresh token only if it still equals `expected`.

        Returns:
            True if the swap happened, False if another writer got there first
        """
        try:
            updated = (
                db.query(User)
                .filter(User.id == user_id, User.refresh_token == expected)
                .update({User.refresh_token: new_token}, synchronize_session="fetch")
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Failed to rotate refresh token for user {user_id}: {exc}")
            raise InternalError("Something went wrong while generating access and refresh tokens") from exc
        return updated == 1

    def clear_refresh_token(self, db: Session, user_id: uuid.UUID) -> None:
        self.set_refresh_token(db, user_id, None)


# Global credential store instance
credential_store = CredentialStore(hash_password=password_hasher.hash)
