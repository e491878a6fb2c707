"""
Subscription service: creating and removing subscriber -> channel edges.
"""
import logging
import uuid

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, NotFoundError
from app.models import Subscription, User

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Writes to the subscription edge table."""

    def subscribe(self, subscriber_id: uuid.UUID, channel_id: uuid.UUID, db: Session) -> Subscription:
        """
        Record that `subscriber_id` subscribes to `channel_id`.

        Every call adds an edge; duplicates are not collapsed here.

        Raises:
            BadRequestError: a user subscribing to themselves
            NotFoundError: channel does not exist
        """
        if subscriber_id == channel_id:
            raise BadRequestError("Cannot subscribe to your own channel")

        channel = db.query(User).filter(User.id == channel_id).first()
        if not channel:
            raise NotFoundError("Channel does not exist")

        subscription = Subscription(subscriber_id=subscriber_id, channel_id=channel_id)
        db.add(subscription)
        db.commit()
        db.refresh(subscription)

        logger.info(f"User {subscriber_id} subscribed to channel {channel_id}")
        return subscription

    def unsubscribe(self, subscriber_id: uuid.UUID, channel_id: uuid.UUID, db: Session) -> int:
        """
        Remove every edge from `subscriber_id` to `channel_id`.

        Returns:
            Number of edges removed (0 if the user was not subscribed)
        """
        removed = (
            db.query(Subscription)
            .filter(
                Subscription.subscriber_id == subscriber_id,
                Subscription.channel_id == channel_id,
            )
            .delete(synchronize_session=False)
        )
        db.commit()

        logger.info(f"User {subscriber_id} unsubscribed from channel {channel_id} ({removed} edges)")
        return removed


# Global subscription service instance
subscription_service = SubscriptionService()
