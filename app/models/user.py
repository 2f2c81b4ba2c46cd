# app/models/user.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy import Enum as PGEnum
from datetime import datetime, timezone
import uuid
from enum import Enum
from typing import Optional

class UserRole(str, Enum):
    Student = "STUDENT"
    Faculty = "FACULTY"    # acts as mentor for assigned students
    HOD = "HOD"
    Dean = "DEAN"
    Admin = "ADMIN"

class User(SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )

    name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False, index=True, unique=True))
    password_hash: str = Field(sa_column=Column(String, nullable=False))

    role: UserRole = Field(
        default=UserRole.Student,
        sa_column=Column(PGEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]), nullable=False, index=True)
    )

    department_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    )

    # Students only: the FACULTY member who reviews at the MENTOR tier
    mentor_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
