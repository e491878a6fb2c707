"""
Authentication dependencies.

Provides:
- get_current_user: FastAPI dependency that returns the authenticated User.
- get_optional_user: same, but returns None for anonymous requests.

The access token is read from the `accessToken` cookie or an
`Authorization: Bearer <jwt>` header.
"""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.errors import UnauthorizedError
from app.db.base import get_db
from app.models import User
from app.services.credential_store import credential_store
from app.services.session import session_boundary
from app.services.token_service import token_service


def _resolve_user(token: str, db: Session) -> User:
    claims = token_service.decode_access_token(token)
    user = credential_store.find_by_id(db, token_service.subject_id(claims))
    if not user:
        raise UnauthorizedError("Invalid access token")
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolve the current authenticated user.

    - Verifies signature, expiry and type of the access token
    - Loads the user named by the token's subject
    """
    token = session_boundary.read_access_token(request)
    if not token:
        raise UnauthorizedError("Unauthorized request")
    return _resolve_user(token, db)


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Like get_current_user, but anonymous requests yield None.

    A missing, expired or otherwise invalid token is treated as anonymous.
    """
    token = session_boundary.read_access_token(request)
    if not token:
        return None
    try:
        return _resolve_user(token, db)
    except UnauthorizedError:
        return None
