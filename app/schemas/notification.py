from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.enums import NotificationType


class NotificationRead(BaseModel):
    id: UUID
    title: str
    body: str
    type: NotificationType
    source_type: Optional[str] = None
    source_id: Optional[UUID] = None
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationPage(BaseModel):
    notifications: List[NotificationRead]
    total: int
    unread_count: int
    page: int
    limit: int


class UnreadCount(BaseModel):
    unread_count: int


class MarkedRead(BaseModel):
    updated: int
