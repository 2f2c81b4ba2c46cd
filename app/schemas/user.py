from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from app.models.user import UserRole


# ---------------------------------------------------------
# BASE
# ---------------------------------------------------------
class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr


# ---------------------------------------------------------
# CREATE USER (Admin creates any user)
# ---------------------------------------------------------
class UserCreate(UserBase):
    password: str = Field(min_length=6)
    role: UserRole
    department_id: Optional[UUID] = None
    mentor_id: Optional[UUID] = None      # Students only

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "Student User",
                    "email": "student@example.com",
                    "password": "password123",
                    "role": "STUDENT",
                    "department_id": "5f0c6c8e-2d4b-4f6e-9a51-0d2f6f4f7c11",
                    "mentor_id": "0b7d2d52-93a4-4b8a-a0a5-3c6d4ab0e2f9"
                },
                {
                    "name": "HOD User",
                    "email": "hod@example.com",
                    "password": "password123",
                    "role": "HOD",
                    "department_id": "5f0c6c8e-2d4b-4f6e-9a51-0d2f6f4f7c11"
                }
            ]
        }
    )


# ---------------------------------------------------------
# READ USER (response)
# ---------------------------------------------------------
class UserRead(UserBase):
    id: UUID
    role: UserRole
    department_id: Optional[UUID] = None
    mentor_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------
# DEPARTMENTS
# ---------------------------------------------------------
class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=20)


class DepartmentRead(DepartmentCreate):
    id: UUID

    model_config = ConfigDict(from_attributes=True)
