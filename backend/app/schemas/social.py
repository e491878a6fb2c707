"""
Pydantic schemas for channel profiles, watch history and subscriptions.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from app.schemas.common import CamelModel


class ChannelProfile(CamelModel):
    """Public channel view with derived subscription fields."""
    id: UUID
    full_name: str
    username: str
    email: str
    avatar: str
    cover_image: str
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool


class VideoOwner(CamelModel):
    """Restricted projection of a video's owner."""
    id: UUID
    full_name: str
    username: str
    avatar: str


class WatchHistoryVideo(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    video_file: str
    thumbnail: str
    duration_seconds: Optional[float] = None
    views: int
    is_published: bool
    created_at: datetime
    owner: Optional[VideoOwner] = None


class SubscriptionDetail(CamelModel):
    id: UUID
    subscriber_id: UUID
    channel_id: UUID
    created_at: datetime


class UnsubscribeResult(CamelModel):
    channel_id: UUID
    removed: int
