"""
User model: identity, credentials and profile images.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base


class User(Base):
    """Registered user. Also acts as a channel that others subscribe to."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(100), unique=True, nullable=False, index=True)  # stored lower-cased
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored lower-cased
    full_name = Column(String(255), nullable=False, index=True)

    # Media host URLs
    avatar = Column(String(500), nullable=False)
    cover_image = Column(String(500), nullable=False)

    # Credentials
    hashed_password = Column(String(255), nullable=False)
    refresh_token = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    videos = relationship("Video", back_populates="owner")
    watch_history = relationship(
        "WatchHistoryEntry",
        back_populates="user",
        order_by="WatchHistoryEntry.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"
