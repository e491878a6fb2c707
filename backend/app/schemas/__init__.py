"""
Pydantic schemas for API request/response validation.
"""
from app.schemas.common import ApiResponse, CamelModel
from app.schemas.user import (
    LoginRequest,
    RefreshTokenRequest,
    ChangePasswordRequest,
    AccountUpdateRequest,
    UserCreateFields,
    UserChangeset,
    UserPublic,
    TokenPair,
    LoginResult,
)
from app.schemas.social import (
    ChannelProfile,
    VideoOwner,
    WatchHistoryVideo,
    SubscriptionDetail,
    UnsubscribeResult,
)
from app.schemas.comment import (
    CommentCreateRequest,
    CommentDetail,
    CommentPage,
)
