#app/models/notification.py

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy import Enum as PGEnum
from typing import Optional
from uuid import UUID, uuid4
from datetime import datetime

from app.models.application import utcnow, _enum_values
from app.models.enums import NotificationType


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: UUID = Field(default_factory=uuid4, sa_column=Column(Uuid, primary_key=True))

    user_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    )

    title: str = Field(sa_column=Column(String(500), nullable=False))
    body: str = Field(sa_column=Column(Text, nullable=False))

    type: NotificationType = Field(
        default=NotificationType.System,
        sa_column=Column(
            PGEnum(NotificationType, name="notification_type", values_callable=_enum_values),
            nullable=False,
        )
    )

    # e.g. ("application", <application id>)
    source_type: Optional[str] = Field(default=None, sa_column=Column(String(50), nullable=True))
    source_id: Optional[UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True))

    read_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
