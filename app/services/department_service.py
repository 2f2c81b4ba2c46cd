# app/services/department_service.py

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import ValidationError
from app.models.department import Department


async def create_department(session: AsyncSession, name: str, code: str) -> Department:
    department = Department(name=name.strip(), code=code.strip().upper())
    session.add(department)
    try:
        await session.commit()
        await session.refresh(department)
    except IntegrityError:
        await session.rollback()
        raise ValidationError("Department name or code already exists")
    return department


async def list_departments(session: AsyncSession) -> list[Department]:
    result = await session.execute(select(Department).order_by(Department.name.asc()))
    return list(result.scalars().all())
