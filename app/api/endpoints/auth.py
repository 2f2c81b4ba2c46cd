# app/api/endpoints/auth.py

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db_session
from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.rate_limiter import limiter
from app.models.user import User
from app.schemas.auth import LoginRequest, TokenWithUser
from app.schemas.common import ApiResponse, ok
from app.schemas.user import UserRead
from app.services.auth_service import authenticate_user, create_login_response

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# -------------------------------------------------------------------
# LOGIN (all roles)
# -------------------------------------------------------------------
@router.post("/login", response_model=ApiResponse[TokenWithUser])
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session)
):
    user = await authenticate_user(session, payload.email, payload.password)

    if not user:
        raise AuthenticationError("Invalid credentials")

    return ok(create_login_response(user), "Login successful")


# -------------------------------------------------------------------
# CURRENT USER
# -------------------------------------------------------------------
@router.get("/me", response_model=ApiResponse[UserRead])
async def me(current_user: User = Depends(get_current_user)):
    return ok(UserRead.model_validate(current_user))
