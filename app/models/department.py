from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, String, Uuid
from datetime import datetime, timezone
import uuid


class Department(SQLModel, table=True):
    __tablename__ = "departments"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )

    name: str = Field(
        sa_column=Column(String(200), nullable=False, unique=True)
    )

    code: str = Field(
        sa_column=Column(String(20), nullable=False, unique=True, index=True)
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
