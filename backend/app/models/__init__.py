"""
Database models package.

All SQLAlchemy models are exported from this module for easy imports.
"""
from app.models.user import User
from app.models.video import Video, WatchHistoryEntry
from app.models.subscription import Subscription
from app.models.comment import Comment

__all__ = [
    "User",
    "Video",
    "WatchHistoryEntry",
    "Subscription",
    "Comment",
]
