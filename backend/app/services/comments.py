"""
Comment service: paginated listing and creation of video comments.
"""
import logging
import math
import uuid

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, NotFoundError
from app.models import Comment, Video
from app.schemas import CommentDetail, CommentPage

logger = logging.getLogger(__name__)


class CommentService:

    def _require_video(self, video_id: uuid.UUID, db: Session) -> Video:
        video = db.query(Video).filter(Video.id == video_id).first()
        if not video:
            raise NotFoundError("Video not found")
        return video

    def list_comments(self, video_id: uuid.UUID, db: Session, page: int = 1, limit: int = 10) -> CommentPage:
        """Return one page of a video's comments, newest first."""
        self._require_video(video_id, db)

        total = db.query(func.count(Comment.id)).filter(Comment.video_id == video_id).scalar() or 0
        comments = (
            db.query(Comment)
            .filter(Comment.video_id == video_id)
            .order_by(Comment.created_at.desc(), Comment.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        return CommentPage(
            comments=[CommentDetail.model_validate(c) for c in comments],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    def add_comment(self, video_id: uuid.UUID, owner_id: uuid.UUID, content: str, db: Session) -> Comment:
        if not content or not content.strip():
            raise BadRequestError("Comment content is required")
        self._require_video(video_id, db)

        comment = Comment(video_id=video_id, owner_id=owner_id, content=content.strip())
        db.add(comment)
        db.commit()
        db.refresh(comment)

        logger.info(f"User {owner_id} commented on video {video_id}")
        return comment


# Global comment service instance
comment_service = CommentService()
