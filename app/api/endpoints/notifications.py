from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db_session
from app.models.user import User
from app.schemas.common import ApiResponse, ok
from app.schemas.notification import MarkedRead, NotificationPage, NotificationRead, UnreadCount
from app.services import notification_service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=ApiResponse[NotificationPage])
async def list_my_notifications(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    result = await notification_service.list_notifications(
        session, current_user.id, page=page, limit=limit, unread_only=unread_only
    )
    return ok(result)


@router.get("/unread-count", response_model=ApiResponse[UnreadCount])
async def unread_count(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    count = await notification_service.get_unread_count(session, current_user.id)
    return ok({"unread_count": count})


@router.patch("/read-all", response_model=ApiResponse[MarkedRead])
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    updated = await notification_service.mark_all_as_read(session, current_user.id)
    return ok({"updated": updated}, "All notifications marked as read")


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationRead])
async def mark_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    notification = await notification_service.mark_as_read(session, current_user.id, notification_id)
    return ok(NotificationRead.model_validate(notification))


@router.delete("/{notification_id}", response_model=ApiResponse[None])
async def delete_notification(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await notification_service.delete_notification(session, current_user.id, notification_id)
    return ok(message="Notification deleted")
