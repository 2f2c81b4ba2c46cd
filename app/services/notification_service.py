# app/services/notification_service.py

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.database import AsyncSessionLocal
from app.core.exceptions import NotFoundError
from app.models.enums import ApplicationStatus, NotificationType
from app.models.notification import Notification
from app.services.email_service import (
    send_application_status_email,
    send_application_submitted_email,
)


# ============================================================================
# DISPATCH (fire-and-forget, safe for BackgroundTasks)
# ============================================================================
async def notify_user(
    user_id: UUID,
    title: str,
    body: str,
    type: NotificationType = NotificationType.System,
    source_type: Optional[str] = None,
    source_id: Optional[UUID] = None,
) -> Optional[Notification]:
    """
    Creates a notification in its own DB session. Never raises: a failed
    notification must not undo the change that triggered it.
    """
    async with AsyncSessionLocal() as session:
        try:
            notification = Notification(
                user_id=user_id,
                title=title,
                body=body,
                type=type,
                source_type=source_type,
                source_id=source_id,
            )
            session.add(notification)
            await session.commit()
            return notification
        except Exception:
            logger.exception(f"Failed to create notification for user {user_id}")
            await session.rollback()
            return None


async def _send_email_quietly(sender, data: Dict[str, Any]) -> None:
    if not settings.ENABLE_EMAIL_NOTIFICATIONS or not data.get("email"):
        return
    try:
        await run_in_threadpool(sender, data)
    except Exception:
        logger.exception(f"Failed to send email to {data.get('email')}")


STATUS_HEADLINES = {
    ApplicationStatus.UnderReview: "forwarded to {level}",
    ApplicationStatus.Approved: "approved",
    ApplicationStatus.Rejected: "rejected",
    ApplicationStatus.Escalated: "escalated",
}


async def notify_application_submitted(
    applicant: Dict[str, Any],
    application: Dict[str, Any],
    mentor_id: Optional[UUID] = None,
) -> None:
    await notify_user(
        applicant["id"],
        title="Application submitted",
        body=f"Your {application['type']} application \"{application['title']}\" is awaiting mentor review.",
        type=NotificationType.Application,
        source_type="application",
        source_id=application["id"],
    )
    if mentor_id is not None:
        await notify_user(
            mentor_id,
            title="New application to review",
            body=f"{applicant['name']} submitted a {application['type']} application: \"{application['title']}\".",
            type=NotificationType.Application,
            source_type="application",
            source_id=application["id"],
        )
    await _send_email_quietly(
        send_application_submitted_email,
        {
            "name": applicant["name"],
            "email": applicant.get("email"),
            "application_id": application["id"],
            "title": application["title"],
            "type": application["type"],
        },
    )


async def notify_application_status(
    applicant: Dict[str, Any],
    application: Dict[str, Any],
    reviewer_role: Optional[str] = None,
    comment: Optional[str] = None,
) -> None:
    status = ApplicationStatus(application["status"])
    headline = STATUS_HEADLINES.get(status, status.value.lower()).format(
        level=application["workflow_level"]
    )
    body = f"Your application \"{application['title']}\" was {headline}"
    if reviewer_role:
        body += f" by the {reviewer_role}"
    body += f": {comment}" if comment else "."

    await notify_user(
        applicant["id"],
        title=f"Application {headline}",
        body=body,
        type=NotificationType.Update,
        source_type="application",
        source_id=application["id"],
    )
    await _send_email_quietly(
        send_application_status_email,
        {
            "name": applicant["name"],
            "email": applicant.get("email"),
            "application_id": application["id"],
            "title": application["title"],
            "status": status.value,
            "workflow_level": application["workflow_level"],
            "reviewer_role": reviewer_role,
            "comment": comment,
        },
    )


# ============================================================================
# INBOX
# ============================================================================
async def list_notifications(
    session: AsyncSession,
    user_id: UUID,
    page: int = 1,
    limit: Optional[int] = None,
    unread_only: bool = False,
) -> dict:
    limit = limit or settings.NOTIFICATIONS_PER_PAGE
    conditions = [Notification.user_id == user_id]
    if unread_only:
        conditions.append(Notification.read_at.is_(None))

    result = await session.execute(
        select(Notification)
        .where(*conditions)
        .order_by(Notification.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    total = await session.scalar(
        select(func.count()).select_from(Notification).where(*conditions)
    )

    return {
        "notifications": list(result.scalars().all()),
        "total": total or 0,
        "unread_count": await get_unread_count(session, user_id),
        "page": page,
        "limit": limit,
    }


async def get_unread_count(session: AsyncSession, user_id: UUID) -> int:
    count = await session.scalar(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read_at.is_(None))
    )
    return count or 0


async def _get_owned(session: AsyncSession, user_id: UUID, notification_id: UUID) -> Notification:
    notification = await session.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise NotFoundError("Notification not found")
    return notification


async def mark_as_read(session: AsyncSession, user_id: UUID, notification_id: UUID) -> Notification:
    notification = await _get_owned(session, user_id, notification_id)
    if notification.read_at is None:
        notification.read_at = datetime.now(timezone.utc)
        session.add(notification)
        await session.commit()
        await session.refresh(notification)
    return notification


async def mark_all_as_read(session: AsyncSession, user_id: UUID) -> int:
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read_at.is_(None))
        .values(read_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return result.rowcount


async def delete_notification(session: AsyncSession, user_id: UUID, notification_id: UUID) -> None:
    notification = await _get_owned(session, user_id, notification_id)
    await session.delete(notification)
    await session.commit()
