# app/services/auth_service.py

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from loguru import logger
import uuid

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.security import (
    hash_password,
    verify_password,
    create_access_token,
)
from app.models.department import Department
from app.models.user import User, UserRole
from app.schemas.auth import TokenWithUser
from app.schemas.user import UserRead


def _as_uuid(value) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


# ============================================================================
# FETCH USER BY EMAIL
# ============================================================================
async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


# ============================================================================
# FETCH USER BY ID
# ============================================================================
async def get_user_by_id(session: AsyncSession, user_id) -> User | None:
    user_uuid = _as_uuid(user_id)
    if user_uuid is None:
        return None
    result = await session.execute(select(User).where(User.id == user_uuid))
    return result.scalar_one_or_none()


# ============================================================================
# CREATE USER
# ============================================================================
async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole,
    department_id: uuid.UUID | None = None,
    mentor_id: uuid.UUID | None = None,
) -> User:

    # ---- VALIDATION RULES ----
    # 1) HOD scoping needs a department
    if role == UserRole.HOD and department_id is None:
        raise ValidationError("HOD must be assigned to a department")

    # 2) Students are reviewed by their department's HOD
    if role == UserRole.Student and department_id is None:
        raise ValidationError("Student must be assigned to a department")

    # 3) Only students have mentors
    if mentor_id is not None and role != UserRole.Student:
        raise ValidationError(f"{role.value} accounts cannot have a mentor")

    # 4) Referenced rows must exist
    if department_id is not None and await session.get(Department, department_id) is None:
        raise ValidationError("Department not found")

    if mentor_id is not None:
        mentor = await get_user_by_id(session, mentor_id)
        if mentor is None or mentor.role != UserRole.Faculty:
            raise ValidationError("Mentor must be an existing FACULTY user")

    user = User(
        id=uuid.uuid4(),
        name=name,
        email=email.lower(),
        password_hash=hash_password(password),
        role=role,
        department_id=department_id,
        mentor_id=mentor_id,
    )

    session.add(user)

    try:
        await session.commit()
        await session.refresh(user)
    except IntegrityError:
        await session.rollback()
        raise ValidationError("User with this email already exists")

    logger.info(f"Created {role.value} user {user.email}")
    return user


# ============================================================================
# LIST USERS
# ============================================================================
async def list_users(session: AsyncSession, role: UserRole | None = None) -> list[User]:
    query = select(User).order_by(User.created_at.desc())
    if role is not None:
        query = query.where(User.role == role)
    result = await session.execute(query)
    return list(result.scalars().all())


# ============================================================================
# AUTHENTICATE
# ============================================================================
async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(session, email)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user


# ============================================================================
# CREATE LOGIN RESPONSE
# ============================================================================
def create_login_response(user: User) -> TokenWithUser:
    token = create_access_token(
        subject=user.id,
        data={"role": user.role.value},
    )
    return TokenWithUser(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserRead.model_validate(user),
    )
