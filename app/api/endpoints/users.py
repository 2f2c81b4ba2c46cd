# app/api/endpoints/users.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db_session
from app.core.exceptions import ValidationError
from app.core.rbac import AllowRoles
from app.models.user import User, UserRole
from app.schemas.common import ApiResponse, ok
from app.schemas.user import DepartmentCreate, DepartmentRead, UserCreate, UserRead
from app.services.auth_service import create_user, get_user_by_email, list_users
from app.services.department_service import create_department, list_departments

router = APIRouter(prefix="/api/users", tags=["Users"])

require_admin = AllowRoles(UserRole.Admin)


# -------------------------------------------------------------------
# Create ANY user (Admin only)
# -------------------------------------------------------------------
@router.post("", response_model=ApiResponse[UserRead], status_code=status.HTTP_201_CREATED)
async def create_new_user(
    data: UserCreate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin)
):
    if await get_user_by_email(session, data.email):
        raise ValidationError("Email already registered")

    user = await create_user(
        session,
        data.name,
        data.email,
        data.password,
        role=data.role,
        department_id=data.department_id,
        mentor_id=data.mentor_id,
    )
    return ok(UserRead.model_validate(user), "User created successfully")


# -------------------------------------------------------------------
# List users (Admin only)
# -------------------------------------------------------------------
@router.get("", response_model=ApiResponse[List[UserRead]])
async def list_all_users(
    role: Optional[UserRole] = Query(default=None),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin)
):
    users = await list_users(session, role=role)
    return ok([UserRead.model_validate(u) for u in users])


# -------------------------------------------------------------------
# Departments
# -------------------------------------------------------------------
@router.post("/departments", response_model=ApiResponse[DepartmentRead], status_code=status.HTTP_201_CREATED)
async def create_new_department(
    data: DepartmentCreate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin)
):
    department = await create_department(session, data.name, data.code)
    return ok(DepartmentRead.model_validate(department), "Department created successfully")


@router.get("/departments", response_model=ApiResponse[List[DepartmentRead]])
async def list_all_departments(
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user)
):
    departments = await list_departments(session)
    return ok([DepartmentRead.model_validate(d) for d in departments])
