from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db_session
from app.models.application import Application
from app.models.enums import ApplicationStatus
from app.models.user import User
from app.schemas.application import (
    ApplicationCreate,
    ApplicationRead,
    ReviewerCommentRead,
    StatusUpdateRequest,
)
from app.schemas.common import ApiResponse, ok
from app.services import application_service, notification_service
from app.services.auth_service import get_user_by_id

router = APIRouter(
    prefix="/api/applications",
    tags=["Applications"]
)


def _as_read(application: Application, comments) -> ApplicationRead:
    read = ApplicationRead.model_validate(application)
    read.reviewer_comments = [ReviewerCommentRead.model_validate(c) for c in comments]
    return read


async def to_read(session: AsyncSession, application: Application) -> ApplicationRead:
    return _as_read(application, await application_service.list_comments(session, application.id))


def _application_context(application: Application) -> dict:
    return {
        "id": application.id,
        "type": application.type,
        "title": application.title,
        "status": application.status.value,
        "workflow_level": application.workflow_level.value,
    }


def _user_context(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email}


# ------------------------------------------------------------
# LIST (filtered by caller role)
# ------------------------------------------------------------
@router.get("", response_model=ApiResponse[List[ApplicationRead]])
async def list_applications(
    status_filter: Optional[ApplicationStatus] = Query(default=None, alias="status"),
    type_filter: Optional[str] = Query(default=None, alias="type"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    apps = await application_service.list_applications(
        session, current_user, status=status_filter, application_type=type_filter
    )
    comments = await application_service.comments_by_application(session, [app.id for app in apps])
    data = [_as_read(app, comments[app.id]) for app in apps]
    message = "Applications retrieved successfully" if data else "No applications found."
    return ok(data, message)


# ------------------------------------------------------------
# GET ONE
# ------------------------------------------------------------
@router.get("/{application_id}", response_model=ApiResponse[ApplicationRead])
async def get_application(
    application_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    app = await application_service.get_application(session, current_user, application_id)
    return ok(await to_read(session, app), "Application retrieved successfully")


# ------------------------------------------------------------
# CREATE (students only)
# ------------------------------------------------------------
@router.post("", response_model=ApiResponse[ApplicationRead], status_code=status.HTTP_201_CREATED)
async def create_application(
    payload: ApplicationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    new_app = await application_service.create_application(
        session,
        current_user,
        payload.type,
        payload.payload.model_dump(),
    )

    background_tasks.add_task(
        notification_service.notify_application_submitted,
        _user_context(current_user),
        _application_context(new_app),
        new_app.mentor_id,
    )

    return ok(await to_read(session, new_app), "Application created successfully")


# ------------------------------------------------------------
# REVIEW (mentor / HOD / dean)
# ------------------------------------------------------------
@router.patch("/{application_id}/status", response_model=ApiResponse[ApplicationRead])
async def update_application_status(
    application_id: str,
    payload: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    app = await application_service.update_application_status(
        session, current_user, application_id, payload.decision, payload.comment
    )

    applicant = await get_user_by_id(session, app.applicant_id)
    if applicant:
        background_tasks.add_task(
            notification_service.notify_application_status,
            _user_context(applicant),
            _application_context(app),
            current_user.role.value,
            payload.comment,
        )

    return ok(await to_read(session, app), "Application status updated successfully")


# ------------------------------------------------------------
# CANCEL (applicant, while pending)
# ------------------------------------------------------------
@router.delete("/{application_id}", response_model=ApiResponse[ApplicationRead])
async def cancel_application(
    application_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    app = await application_service.cancel_application(session, current_user, application_id)
    return ok(await to_read(session, app), "Application cancelled successfully")
