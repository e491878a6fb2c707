"""
Pydantic schemas for video comments.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import CamelModel


class CommentCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentDetail(CamelModel):
    id: UUID
    video_id: UUID
    owner_id: Optional[UUID] = None
    content: str
    created_at: datetime
    updated_at: datetime


class CommentPage(CamelModel):
    """One page of comments plus pagination counters."""
    comments: List[CommentDetail]
    total: int
    page: int
    limit: int
    total_pages: int
