"""
Social graph aggregation: channel profiles and watch history.

All queries here are read-only. Counts and membership tests are computed by
the database as correlated subqueries so edge lists never reach Python.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import exists, false, func, select
from sqlalchemy.orm import Session, aliased

from app.core.errors import BadRequestError, NotFoundError
from app.models import Subscription, User, Video, WatchHistoryEntry
from app.schemas import ChannelProfile, VideoOwner, WatchHistoryVideo
from app.services.credential_store import normalize_identity

logger = logging.getLogger(__name__)


class SocialGraphAggregator:
    """Derived relational views over users, subscriptions and videos."""

    def get_channel_profile(
        self,
        db: Session,
        username: str,
        viewer_id: Optional[uuid.UUID] = None,
    ) -> ChannelProfile:
        """
        Fetch a channel with its subscription statistics.

        Args:
            db: Database session
            username: Channel username, matched case-insensitively
            viewer_id: User looking at the channel, None for anonymous

        Returns:
            ChannelProfile with subscriber/subscribed-to counts and whether the
            viewer is subscribed

        Raises:
            BadRequestError: blank username
            NotFoundError: no channel with this username
        """
        if not username or not username.strip():
            raise BadRequestError("Username is required")

        subscribers_count = (
            select(func.count(Subscription.id))
            .where(Subscription.channel_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        subscribed_to_count = (
            select(func.count(Subscription.id))
            .where(Subscription.subscriber_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        if viewer_id is not None:
            is_subscribed = (
                exists()
                .where(Subscription.channel_id == User.id, Subscription.subscriber_id == viewer_id)
                .correlate(User)
            )
        else:
            is_subscribed = false()

        stmt = select(
            User.id,
            User.full_name,
            User.username,
            User.email,
            User.avatar,
            User.cover_image,
            subscribers_count.label("subscribers_count"),
            subscribed_to_count.label("channels_subscribed_to_count"),
            is_subscribed.label("is_subscribed"),
        ).where(User.username == normalize_identity(username))

        row = db.execute(stmt).mappings().first()
        if row is None:
            raise NotFoundError("Channel does not exist")

        return ChannelProfile(
            id=row["id"],
            full_name=row["full_name"],
            username=row["username"],
            email=row["email"],
            avatar=row["avatar"],
            cover_image=row["cover_image"],
            subscribers_count=row["subscribers_count"] or 0,
            channels_subscribed_to_count=row["channels_subscribed_to_count"] or 0,
            is_subscribed=bool(row["is_subscribed"]),
        )

    def get_watch_history(self, db: Session, user_id: uuid.UUID) -> List[WatchHistoryVideo]:
        """
        Resolve a user's watch history into videos with their owners.

        Entries come back in stored order. Each video's `owner` is a single
        object (or None if the owner account no longer exists).

        Raises:
            NotFoundError: the user does not exist
        """
        if not db.query(exists().where(User.id == user_id)).scalar():
            raise NotFoundError("User not found")

        owner = aliased(User)
        stmt = (
            select(Video, owner)
            .join(WatchHistoryEntry, WatchHistoryEntry.video_id == Video.id)
            .outerjoin(owner, owner.id == Video.owner_id)
            .where(WatchHistoryEntry.user_id == user_id)
            .order_by(WatchHistoryEntry.position)
        )

        history = []
        for video, video_owner in db.execute(stmt).all():
            history.append(
                WatchHistoryVideo(
                    id=video.id,
                    title=video.title,
                    description=video.description,
                    video_file=video.video_file,
                    thumbnail=video.thumbnail,
                    duration_seconds=video.duration_seconds,
                    views=video.views,
                    is_published=video.is_published,
                    created_at=video.created_at,
                    owner=VideoOwner.model_validate(video_owner) if video_owner is not None else None,
                )
            )

        logger.debug(f"Watch history for user {user_id}: {len(history)} videos")
        return history


# Global aggregator instance
social_graph = SocialGraphAggregator()
