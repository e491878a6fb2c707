"""
Account service: registration, login and profile management.

Handles:
- Registration with avatar/cover image upload and cleanup on failure
- Login, logout and refresh-token exchange
- Password change and account detail updates
- Avatar and cover image replacement
"""
import logging
import uuid
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.orm import Session

from app.core.errors import (
    ApiError,
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.security import MAX_PASSWORD_BYTES, PasswordHasher
from app.models import User
from app.schemas import TokenPair, UserChangeset, UserCreateFields
from app.services.credential_store import CredentialStore, credential_store
from app.services.media_storage import MediaStorage, MediaUploadError, UploadedMedia, media_storage
from app.services.token_service import TokenService, token_service

logger = logging.getLogger(__name__)

AVATAR_FOLDER = "avatars"
COVER_IMAGE_FOLDER = "cover-images"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _check_password_length(password: str) -> None:
    if PasswordHasher.exceeds_limit(password):
        raise BadRequestError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


class AccountService:
    """Orchestrates the credential store, token service and media host."""

    def __init__(self, store: CredentialStore, tokens: TokenService, media: MediaStorage):
        self.store = store
        self.tokens = tokens
        self.media = media

    # Media helpers

    def _upload(self, upload: UploadFile, folder: str, label: str) -> UploadedMedia:
        try:
            return self.media.upload(upload.file, upload.filename or "", folder)
        except MediaUploadError as exc:
            logger.error(f"Error uploading {label}: {exc}")
            raise InternalError(f"Failed to upload {label}") from exc

    def _discard(self, uploaded: List[UploadedMedia]) -> None:
        """Best-effort removal of uploaded files; failures are only logged."""
        for item in uploaded:
            try:
                self.media.delete(item.public_id)
            except Exception:  # noqa: BLE001
                logger.warning(f"Could not delete media {item.public_id}", exc_info=True)

    def _discard_url(self, url: Optional[str]) -> None:
        public_id = self.media.public_id_from_url(url) if url else None
        if public_id:
            self._discard([UploadedMedia(url=url, public_id=public_id)])

    # Registration / authentication

    def register(
        self,
        db: Session,
        fullname: Optional[str],
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        avatar: Optional[UploadFile],
        cover_image: Optional[UploadFile],
    ) -> User:
        """
        Register a new user.

        Identity conflicts are checked before anything is uploaded. If the
        user row cannot be created, uploaded images are removed again.

        Raises:
            BadRequestError: missing field or file
            ConflictError: username or email already taken
            InternalError: upload or creation failed
        """
        if any(_is_blank(field) for field in (fullname, email, username, password)):
            raise BadRequestError("All fields are required")
        _check_password_length(password)

        if self.store.find_by_username_or_email(db, username=username, email=email):
            raise ConflictError("User with this username or email already exists")

        if avatar is None or not avatar.filename:
            raise BadRequestError("Avatar file is required")
        if cover_image is None or not cover_image.filename:
            raise BadRequestError("Cover image file is required")

        uploaded: List[UploadedMedia] = []
        try:
            uploaded.append(self._upload(avatar, AVATAR_FOLDER, "avatar"))
            uploaded.append(self._upload(cover_image, COVER_IMAGE_FOLDER, "cover image"))
        except InternalError:
            self._discard(uploaded)
            raise

        fields = UserCreateFields(
            username=username,
            email=email,
            full_name=fullname,
            avatar=uploaded[0].url,
            cover_image=uploaded[1].url,
            password=password,
        )
        try:
            user = self.store.create(db, fields)
        except ApiError:
            self._discard(uploaded)
            raise
        except Exception as exc:
            logger.error(f"Error creating user {username}: {exc}", exc_info=True)
            self._discard(uploaded)
            raise InternalError(
                "Something went wrong while registering the user and images were deleted"
            ) from exc

        return user

    def login(
        self,
        db: Session,
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
    ) -> Tuple[User, TokenPair]:
        """
        Authenticate by username or email and issue a fresh token pair.

        Raises:
            BadRequestError: no identity or no password supplied
            NotFoundError: unknown user
            UnauthorizedError: wrong password
        """
        if _is_blank(email) and _is_blank(username):
            raise BadRequestError("Username or email is required")
        if _is_blank(password):
            raise BadRequestError("Password is required")

        user = self.store.find_by_username_or_email(db, username=username, email=email)
        if not user:
            raise NotFoundError("User does not exist")

        if not self.tokens.verify_password(password, user.hashed_password):
            logger.info(f"Failed login attempt for user {user.id}")
            raise UnauthorizedError("Invalid user credentials")

        tokens = self.tokens.rotate_tokens(db, user.id)
        db.refresh(user)
        return user, tokens

    def logout(self, db: Session, user: User) -> None:
        self.tokens.invalidate(db, user.id)

    def refresh(self, db: Session, presented_refresh_token: Optional[str]) -> TokenPair:
        if _is_blank(presented_refresh_token):
            raise UnauthorizedError("Refresh token is required")
        return self.tokens.refresh(db, presented_refresh_token)

    # Profile management

    def change_password(
        self,
        db: Session,
        user: User,
        old_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        if _is_blank(old_password) or _is_blank(new_password):
            raise BadRequestError("Old and new password are required")
        _check_password_length(new_password)

        if not self.tokens.verify_password(old_password, user.hashed_password):
            raise UnauthorizedError("Old password is incorrect")

        self.store.set_password(db, user.id, new_password)
        logger.info(f"Password changed for user {user.id}")

    def update_account_details(
        self,
        db: Session,
        user_id: uuid.UUID,
        fullname: Optional[str],
        email: Optional[str],
        username: Optional[str],
    ) -> User:
        if _is_blank(fullname):
            raise BadRequestError("Fullname is required")
        if _is_blank(email):
            raise BadRequestError("Email is required")
        if _is_blank(username):
            raise BadRequestError("Username is required")

        changeset = UserChangeset(full_name=fullname, email=email, username=username)
        return self.store.update_fields(db, user_id, changeset)

    def _replace_image(
        self,
        db: Session,
        user: User,
        upload: Optional[UploadFile],
        field: str,
        folder: str,
        label: str,
    ) -> User:
        if upload is None or not upload.filename:
            raise BadRequestError(f"{label.capitalize()} file is required")

        previous_url = getattr(user, field)
        uploaded = self._upload(upload, folder, label)
        try:
            updated = self.store.update_fields(db, user.id, UserChangeset(**{field: uploaded.url}))
        except Exception:
            self._discard([uploaded])
            raise

        self._discard_url(previous_url)
        return updated

    def update_avatar(self, db: Session, user: User, avatar: Optional[UploadFile]) -> User:
        return self._replace_image(db, user, avatar, "avatar", AVATAR_FOLDER, "avatar")

    def update_cover_image(self, db: Session, user: User, cover_image: Optional[UploadFile]) -> User:
        return self._replace_image(db, user, cover_image, "cover_image", COVER_IMAGE_FOLDER, "cover image")


# Global account service instance
account_service = AccountService(credential_store, token_service, media_storage)
