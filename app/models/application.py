# app/models/application.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Boolean, DateTime, ForeignKey, JSON, String, Text, Uuid
from sqlalchemy import Enum as PGEnum
from datetime import datetime, timezone
import uuid
from typing import Any, Dict, Optional

from app.models.enums import ApplicationStatus, WorkflowLevel


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Application(SQLModel, table=True):
    __tablename__ = "applications"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )

    applicant_id: uuid.UUID = Field(
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    )

    type: str = Field(sa_column=Column(String(100), nullable=False, index=True))
    title: str = Field(sa_column=Column(String(500), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))

    proof_file_url: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )

    details: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False)
    )

    status: ApplicationStatus = Field(
        default=ApplicationStatus.Pending,
        sa_column=Column(
            PGEnum(ApplicationStatus, name="application_status", values_callable=_enum_values),
            nullable=False,
            index=True,
        )
    )

    workflow_level: WorkflowLevel = Field(
        default=WorkflowLevel.Mentor,
        sa_column=Column(
            PGEnum(WorkflowLevel, name="workflow_level", values_callable=_enum_values),
            nullable=False,
            index=True,
        )
    )

    # Reviewer assignment captured from the applicant at submission time
    mentor_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    )

    department_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    )

    is_cancelled: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
