import pytest
from datetime import timedelta

from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import UserRole
from app.services.auth_service import create_user


@pytest.mark.asyncio
async def test_login_and_me(client, db_session):
    await create_user(db_session, "Asha Rao", "Asha@Campus.edu", "s3cret-pass", UserRole.Faculty)

    res = await client.post("/api/auth/login", json={"email": "asha@campus.edu", "password": "s3cret-pass"})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "FACULTY"

    res = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert res.status_code == 200
    assert res.json()["data"]["email"] == "asha@campus.edu"


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, db_session):
    await create_user(db_session, "Ravi", "ravi@campus.edu", "right-pass", UserRole.Dean)

    res = await client.post("/api/auth/login", json={"email": "ravi@campus.edu", "password": "wrong-pass"})
    assert res.status_code == 401
    assert res.json()["code"] == "AUTHENTICATION_ERROR"

    res = await client.post("/api/auth/login", json={"email": "nobody@campus.edu", "password": "x"})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_expired_token(client, campus):
    token = create_access_token(subject=str(campus.student.id), expires_delta=timedelta(seconds=-5))
    res = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json()["message"] == "Token has expired"


@pytest.mark.asyncio
async def test_token_for_deleted_user(client):
    token = create_access_token(subject="00000000-0000-0000-0000-000000000000")
    res = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_long_passwords_are_fully_significant():
    base = "x" * 80
    hashed = hash_password(base + "a")
    assert verify_password(base + "a", hashed)
    assert not verify_password(base + "b", hashed)
