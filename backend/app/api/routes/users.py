"""
API endpoints for user accounts, sessions and channel data.

Endpoints:
- POST /users/register - Create an account (multipart, with avatar and cover image)
- POST /users/login - Issue access/refresh tokens as cookies and in the body
- POST /users/logout - Invalidate the refresh token and clear cookies
- POST /users/refresh-token - Exchange a refresh token for a new pair
- POST /users/change-password - Change the current user's password
- GET /users/current-user - Current user details
- PATCH /users/update-account - Update full name, email and username
- PATCH /users/avatar - Replace the avatar image
- PATCH /users/cover-image - Replace the cover image
- GET /users/channel/{username} - Channel profile with subscription stats
- GET /users/history - Current user's watch history

Routes that hash or verify passwords (register, login, change-password) are
plain `def` so FastAPI runs them in its threadpool instead of on the event loop.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user, get_optional_user
from app.core.config import settings
from app.core.rate_limit import limiter
from app.db.base import get_db
from app.models import User
from app.schemas import (
    AccountUpdateRequest,
    ApiResponse,
    ChangePasswordRequest,
    ChannelProfile,
    LoginRequest,
    LoginResult,
    RefreshTokenRequest,
    TokenPair,
    UserPublic,
    WatchHistoryVideo,
)
from app.services.accounts import account_service
from app.services.session import session_boundary
from app.services.social_graph import social_graph

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=ApiResponse[UserPublic], status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
def register_user(
    request: Request,
    fullname: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    db: Session = Depends(get_db),
):
    """Register a new user with avatar and cover image."""
    user = account_service.register(
        db,
        fullname=fullname,
        email=email,
        username=username,
        password=password,
        avatar=avatar,
        cover_image=cover_image,
    )
    logger.info(f"Registered user {user.id}")
    return ApiResponse.ok(
        UserPublic.model_validate(user),
        message="User registered successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login", response_model=ApiResponse[LoginResult])
@limiter.limit(settings.auth_rate_limit)
def login_user(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Log in with username or email and password.

    Tokens are returned in the body and set as http-only cookies.
    """
    user, tokens = account_service.login(
        db,
        email=credentials.email,
        username=credentials.username,
        password=credentials.password,
    )
    session_boundary.set_session_cookies(response, tokens)
    return ApiResponse.ok(
        LoginResult(
            user=UserPublic.model_validate(user),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        ),
        message="User logged in successfully",
    )


@router.post("/logout", response_model=ApiResponse[dict])
async def logout_user(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """End the session: forget the refresh token and clear both cookies."""
    account_service.logout(db, current_user)
    session_boundary.clear_session_cookies(response)
    return ApiResponse.ok({}, message="User logged out successfully")


@router.post("/refresh-token", response_model=ApiResponse[TokenPair])
@limiter.limit(settings.auth_rate_limit)
async def refresh_access_token(
    request: Request,
    response: Response,
    body: Optional[RefreshTokenRequest] = None,
    db: Session = Depends(get_db),
):
    """Rotate tokens using the refresh token from the cookie or body."""
    presented = session_boundary.read_refresh_token(
        request, body.refresh_token if body else None
    )
    tokens = account_service.refresh(db, presented)
    session_boundary.set_session_cookies(response, tokens)
    return ApiResponse.ok(tokens, message="Access token refreshed successfully")


@router.post("/change-password", response_model=ApiResponse[dict])
def change_current_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    account_service.change_password(
        db,
        current_user,
        old_password=payload.old_password,
        new_password=payload.new_password,
    )
    return ApiResponse.ok({}, message="Password changed successfully")


@router.get("/current-user", response_model=ApiResponse[UserPublic])
async def get_current_user_details(current_user: User = Depends(get_current_user)):
    return ApiResponse.ok(UserPublic.model_validate(current_user), message="Current user details")


@router.patch("/update-account", response_model=ApiResponse[UserPublic])
async def update_account_details(
    payload: AccountUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = account_service.update_account_details(
        db,
        current_user.id,
        fullname=payload.fullname,
        email=payload.email,
        username=payload.username,
    )
    return ApiResponse.ok(UserPublic.model_validate(user), message="Account details updated successfully")


@router.patch("/avatar", response_model=ApiResponse[UserPublic])
async def update_user_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = account_service.update_avatar(db, current_user, avatar)
    return ApiResponse.ok(UserPublic.model_validate(user), message="Avatar updated successfully")


@router.patch("/cover-image", response_model=ApiResponse[UserPublic])
async def update_user_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = account_service.update_cover_image(db, current_user, cover_image)
    return ApiResponse.ok(UserPublic.model_validate(user), message="Cover image updated successfully")


@router.get("/channel/{username}", response_model=ApiResponse[ChannelProfile])
async def get_user_channel_profile(
    username: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """
    Channel profile with subscriber count, subscribed-to count and whether
    the caller is subscribed.
    """
    profile = social_graph.get_channel_profile(db, username, viewer.id if viewer else None)
    return ApiResponse.ok(profile, message="Channel profile fetched successfully")


@router.get("/history", response_model=ApiResponse[List[WatchHistoryVideo]])
async def get_watch_history(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    history = social_graph.get_watch_history(db, current_user.id)
    return ApiResponse.ok(history, message="Watch history fetched successfully")
