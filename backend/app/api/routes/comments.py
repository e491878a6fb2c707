"""
API endpoints for video comments.

Endpoints:
- GET /comments/{video_id} - Paginated comments for a video
- POST /comments/{video_id} - Add a comment as the current user
"""
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.db.base import get_db
from app.models import User
from app.schemas import ApiResponse, CommentCreateRequest, CommentDetail, CommentPage
from app.services.comments import comment_service

router = APIRouter()


@router.get("/{video_id}", response_model=ApiResponse[CommentPage])
async def list_video_comments(
    video_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    comments = comment_service.list_comments(video_id, db, page=page, limit=limit)
    return ApiResponse.ok(comments, message="Comments fetched successfully")


@router.post("/{video_id}", response_model=ApiResponse[CommentDetail], status_code=status.HTTP_201_CREATED)
async def add_video_comment(
    video_id: uuid.UUID,
    payload: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = comment_service.add_comment(video_id, current_user.id, payload.content, db)
    return ApiResponse.ok(
        CommentDetail.model_validate(comment),
        message="Comment added successfully",
        status_code=status.HTTP_201_CREATED,
    )
