"""
Subscription model: a directed subscriber -> channel edge between two users.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base


class Subscription(Base):
    """Edge created when `subscriber` subscribes to `channel`.

    No uniqueness constraint on the pair: repeated subscribe calls add edges.
    """

    __tablename__ = "subscriptions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subscriber_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    channel_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    subscriber = relationship("User", foreign_keys=[subscriber_id])
    channel = relationship("User", foreign_keys=[channel_id])

    def __repr__(self):
        return f"<Subscription(id={self.id}, subscriber_id={self.subscriber_id}, channel_id={self.channel_id})>"
