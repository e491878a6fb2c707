"""
Pydantic schemas for user accounts and authentication.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import CamelModel


# Request schemas
class LoginRequest(BaseModel):
    """Credentials for login. At least one of email/username is required."""
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    """Refresh token supplied in the body when no cookie is present."""
    refresh_token: Optional[str] = Field(None, alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


class ChangePasswordRequest(BaseModel):
    old_password: Optional[str] = Field(None, alias="oldPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")

    model_config = ConfigDict(populate_by_name=True)


class AccountUpdateRequest(BaseModel):
    fullname: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None


# Credential store inputs
class UserCreateFields(BaseModel):
    """Everything needed to create a user; `password` is plaintext."""
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str
    password: str


class UserChangeset(BaseModel):
    """
    Partial update for a user.

    Only fields explicitly set are written; read them back with
    ``model_dump(exclude_unset=True)``. `password` is plaintext and is hashed
    by the store only when present in the changeset.
    """
    username: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    password: Optional[str] = None

    def touched(self) -> dict:
        return self.model_dump(exclude_unset=True)


# Response schemas
class UserPublic(CamelModel):
    """User as exposed to clients. Never carries credentials."""
    id: UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str
    created_at: datetime
    updated_at: datetime


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class LoginResult(CamelModel):
    user: UserPublic
    access_token: str
    refresh_token: str
