# app/models/application_comment.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid
import uuid
from datetime import datetime
from typing import Optional

from app.models.application import utcnow


class ApplicationComment(SQLModel, table=True):
    """One reviewer action on an application. Rows are only ever inserted."""

    __tablename__ = "application_comments"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )

    application_id: uuid.UUID = Field(
        sa_column=Column(Uuid, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    )

    reviewer_id: uuid.UUID = Field(
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    )

    # Snapshot, the user's role may change later
    reviewer_role: str = Field(sa_column=Column(String(20), nullable=False))

    decision: str = Field(sa_column=Column(String(30), nullable=False))

    comment: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
