from fastapi import APIRouter, Depends, HTTPException
import redis
from backend import RedisBackend, get_backend
from realtime.hub import RealtimeHub
from routers.dependencies import get_current_user, get_hub
from schemas.notifications import CreateNotificationRequest, MarkAllReadResponse, NotificationResponse
from logging_config import get_logger

logger = get_logger(__name__)

notifications_router = APIRouter(prefix="/notifications", tags=["notifications"])


@notifications_router.get("/", response_model=list[NotificationResponse])
async def get_notifications(user_id: str = Depends(get_current_user), backend: RedisBackend = Depends(get_backend)):
    return backend.get_notifications(user_id)


@notifications_router.post("/", response_model=NotificationResponse, status_code=201)
async def create_notification(
    body: CreateNotificationRequest,
    user_id: str = Depends(get_current_user),
    backend: RedisBackend = Depends(get_backend),
    hub: RealtimeHub = Depends(get_hub),
):
    # Persist first; the push is only a shortcut for recipients online right now.
    try:
        stored = backend.create_notification({**body.model_dump(), "sender": user_id})
    except redis.RedisError as e:
        logger.error(f"Error creating notification for {body.recipient}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create notification")

    hub.push_notification(stored["recipient"], stored)
    return stored


@notifications_router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(user_id: str = Depends(get_current_user), backend: RedisBackend = Depends(get_backend)):
    return MarkAllReadResponse(updated=backend.mark_all_notifications_read(user_id))


@notifications_router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    user_id: str = Depends(get_current_user),
    backend: RedisBackend = Depends(get_backend),
):
    notification = backend.mark_notification_read(notification_id, user_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@notifications_router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    user_id: str = Depends(get_current_user),
    backend: RedisBackend = Depends(get_backend),
):
    if not backend.delete_notification(notification_id, user_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"message": "Notification removed"}
