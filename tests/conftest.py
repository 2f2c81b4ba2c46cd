import os
import tempfile
import uuid
from types import SimpleNamespace

import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# TEST SETTINGS
# Must be in the environment BEFORE app.core.config is imported.
# ------------------------------------------------------------------
_db_dir = tempfile.mkdtemp(prefix="campushub-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENABLE_EMAIL_NOTIFICATIONS"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("REDIS_URL", None)

from sqlmodel import SQLModel  # noqa: E402

from app.main import app  # noqa: E402
from app.core.database import AsyncSessionLocal, engine  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.models import application, application_comment, notification  # noqa: E402,F401
from app.models.department import Department  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402


@pytest_asyncio.fixture(autouse=True)
async def reset_db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session():
    async with AsyncSessionLocal() as session:
        yield session


def auth_headers(user: User) -> dict:
    token = create_access_token(subject=str(user.id), data={"role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


async def add_user(session, role: UserRole, name: str, **fields) -> User:
    user = User(
        name=name,
        email=f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:6]}@campus.edu",
        password_hash="not-a-real-hash",
        role=role,
        **fields,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def campus(db_session):
    """
    One department with a full reviewer chain, plus a second department and
    an unrelated faculty member for scope checks.
    """
    cse = Department(name="Computer Science", code="CSE")
    ece = Department(name="Electronics", code="ECE")
    db_session.add_all([cse, ece])
    await db_session.commit()

    mentor = await add_user(db_session, UserRole.Faculty, "Mentor", department_id=cse.id)
    other_faculty = await add_user(db_session, UserRole.Faculty, "Other Faculty", department_id=cse.id)
    hod = await add_user(db_session, UserRole.HOD, "Hod", department_id=cse.id)
    other_hod = await add_user(db_session, UserRole.HOD, "Other Hod", department_id=ece.id)
    dean = await add_user(db_session, UserRole.Dean, "Dean")
    admin = await add_user(db_session, UserRole.Admin, "Admin")
    student = await add_user(
        db_session, UserRole.Student, "Student", department_id=cse.id, mentor_id=mentor.id
    )
    other_student = await add_user(
        db_session, UserRole.Student, "Other Student", department_id=cse.id, mentor_id=other_faculty.id
    )

    users = dict(
        mentor=mentor,
        other_faculty=other_faculty,
        hod=hod,
        other_hod=other_hod,
        dean=dean,
        admin=admin,
        student=student,
        other_student=other_student,
    )
    return SimpleNamespace(
        department=cse,
        other_department=ece,
        headers={key: auth_headers(user) for key, user in users.items()},
        **users,
    )


APPLICATION_BODY = {
    "type": "leave",
    "payload": {
        "title": "Medical leave",
        "description": "Three days of leave for a scheduled surgery.",
        "details": {"from": "2026-11-02", "to": "2026-11-04"},
    },
}


@pytest_asyncio.fixture
async def submit(client):
    async def _submit(headers, body=None):
        res = await client.post("/api/applications", json=body or APPLICATION_BODY, headers=headers)
        assert res.status_code == 201, res.text
        return res.json()["data"]

    return _submit


@pytest_asyncio.fixture
async def review(client):
    async def _review(app_id, headers, decision, comment=None):
        return await client.patch(
            f"/api/applications/{app_id}/status",
            json={"decision": decision, "comment": comment},
            headers=headers,
        )

    return _review
