"""
API endpoints for channel subscriptions.

Endpoints:
- POST /subscriptions/c/{channel_id} - Subscribe the current user to a channel
- DELETE /subscriptions/c/{channel_id} - Remove the current user's subscription
"""
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.db.base import get_db
from app.models import User
from app.schemas import ApiResponse, SubscriptionDetail, UnsubscribeResult
from app.services.subscriptions import subscription_service

router = APIRouter()


@router.post(
    "/c/{channel_id}",
    response_model=ApiResponse[SubscriptionDetail],
    status_code=status.HTTP_201_CREATED,
)
async def subscribe_to_channel(
    channel_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    subscription = subscription_service.subscribe(current_user.id, channel_id, db)
    return ApiResponse.ok(
        SubscriptionDetail.model_validate(subscription),
        message="Subscribed successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.delete("/c/{channel_id}", response_model=ApiResponse[UnsubscribeResult])
async def unsubscribe_from_channel(
    channel_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    removed = subscription_service.unsubscribe(current_user.id, channel_id, db)
    return ApiResponse.ok(
        UnsubscribeResult(channel_id=channel_id, removed=removed),
        message="Unsubscribed successfully",
    )
