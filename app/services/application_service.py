# app/services/application_service.py

from datetime import datetime, timezone
from typing import Optional
import uuid

from loguru import logger
from sqlalchemy import and_, false, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.constants import INTERVENTION_POLICY, REVIEW_POLICY, REVIEWER_ROLES
from app.core.exceptions import (
    AuthorizationError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.core.workflow import (
    Pending,
    Rejected,
    WorkflowState,
    allowed_decisions,
    apply_decision,
    is_terminal,
    state_from_columns,
)
from app.models.application import Application
from app.models.application_comment import ApplicationComment
from app.models.enums import ApplicationStatus, ReviewDecision
from app.models.user import User, UserRole

CANCEL_DECISION = "CANCEL"


def _as_uuid(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError("Application not found")


def _clean(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"'{field}' is required", {"field": field})
    return value


async def _commit(session: AsyncSession, action: str) -> None:
    try:
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception(f"Database error while trying to {action}")
        raise InternalError(f"Failed to {action}")


# ------------------------------------------------------------
# REVIEWER SCOPE
# ------------------------------------------------------------
def in_reviewer_scope(caller: User, application: Application) -> bool:
    """Relationship check layered on top of the (role, tier) policy."""
    if caller.role == UserRole.Faculty:
        return application.mentor_id == caller.id
    if caller.role == UserRole.HOD:
        return application.department_id is not None and application.department_id == caller.department_id
    return caller.role == UserRole.Dean


def _scope_clause(caller: User):
    if caller.role == UserRole.Faculty:
        return Application.mentor_id == caller.id
    if caller.role == UserRole.HOD:
        return Application.department_id == caller.department_id
    return None


def _actionable_clause(caller: User):
    """SQL form of `allowed_decisions(caller.role, state) is not None`."""
    clauses = [
        and_(
            Application.status.in_([ApplicationStatus.Pending, ApplicationStatus.UnderReview]),
            Application.workflow_level == level,
        )
        for (role, level) in REVIEW_POLICY
        if role == caller.role
    ]
    clauses += [
        and_(
            Application.status == ApplicationStatus.Escalated,
            Application.workflow_level == level,
        )
        for (role, level) in INTERVENTION_POLICY
        if role == caller.role
    ]
    return or_(*clauses) if clauses else false()


def can_act_on(caller: User, application: Application) -> bool:
    state = state_from_columns(application.status, application.workflow_level)
    return (
        allowed_decisions(caller.role, state) is not None
        and in_reviewer_scope(caller, application)
    )


# ------------------------------------------------------------
# CREATE
# ------------------------------------------------------------
async def create_application(
    session: AsyncSession,
    caller: User,
    application_type: str,
    payload: dict,
) -> Application:

    if caller.role != UserRole.Student:
        raise AuthorizationError("Only students can create applications")

    # Every application needs an owner at MENTOR and at HOD
    if caller.mentor_id is None:
        raise ValidationError("Student has no assigned mentor", {"field": "mentor_id"})
    if caller.department_id is None:
        raise ValidationError("Student has no department", {"field": "department_id"})

    application = Application(
        id=uuid.uuid4(),
        applicant_id=caller.id,
        type=_clean(application_type, "type").upper(),
        title=_clean(payload.get("title"), "title"),
        description=_clean(payload.get("description"), "description"),
        proof_file_url=payload.get("proof_file_url") or None,
        details=payload.get("details") or {},
        status=ApplicationStatus.Pending,
        workflow_level=Pending().workflow_level,
        mentor_id=caller.mentor_id,
        department_id=caller.department_id,
    )
    session.add(application)

    await _commit(session, "create application")
    await session.refresh(application)

    logger.info(f"Application {application.id} ({application.type}) submitted by {caller.id}")
    return application


# ------------------------------------------------------------
# READ
# ------------------------------------------------------------
async def list_applications(
    session: AsyncSession,
    caller: User,
    status: Optional[ApplicationStatus] = None,
    application_type: Optional[str] = None,
) -> list[Application]:

    query = select(Application).order_by(Application.updated_at.desc())

    # ADMIN → sees all
    if caller.role == UserRole.Admin:
        pass

    # STUDENT → sees only their own
    elif caller.role == UserRole.Student:
        query = query.where(Application.applicant_id == caller.id)

    # REVIEWERS → what is waiting at their tier, within their scope
    elif caller.role in REVIEWER_ROLES:
        query = query.where(
            Application.is_cancelled.is_(False),
            _actionable_clause(caller),
        )
        scope = _scope_clause(caller)
        if scope is not None:
            query = query.where(scope)

    else:
        return []

    if status is not None:
        query = query.where(Application.status == status)
    if application_type:
        query = query.where(Application.type == application_type.strip().upper())

    result = await session.execute(query)
    return list(result.scalars().all())


async def _has_reviewed(session: AsyncSession, caller: User, application_id: uuid.UUID) -> bool:
    result = await session.execute(
        select(ApplicationComment.id)
        .where(
            ApplicationComment.application_id == application_id,
            ApplicationComment.reviewer_id == caller.id,
        )
        .limit(1)
    )
    return result.first() is not None


async def is_visible(session: AsyncSession, caller: User, application: Application) -> bool:
    if caller.role == UserRole.Admin or application.applicant_id == caller.id:
        return True
    if caller.role not in REVIEWER_ROLES:
        return False
    return can_act_on(caller, application) or await _has_reviewed(session, caller, application.id)


async def get_application(session: AsyncSession, caller: User, application_id) -> Application:
    """Absent and not-visible are indistinguishable to the caller."""
    application = await session.get(Application, _as_uuid(application_id))
    if application is None or not await is_visible(session, caller, application):
        raise NotFoundError("Application not found")
    return application


async def list_comments(session: AsyncSession, application_id: uuid.UUID) -> list[ApplicationComment]:
    result = await session.execute(
        select(ApplicationComment)
        .where(ApplicationComment.application_id == application_id)
        .order_by(ApplicationComment.created_at.asc())
    )
    return list(result.scalars().all())


async def comments_by_application(
    session: AsyncSession, application_ids: list[uuid.UUID]
) -> dict[uuid.UUID, list[ApplicationComment]]:
    """Comment trails for several applications in one query, oldest first."""
    grouped: dict[uuid.UUID, list[ApplicationComment]] = {app_id: [] for app_id in application_ids}
    if not application_ids:
        return grouped
    result = await session.execute(
        select(ApplicationComment)
        .where(ApplicationComment.application_id.in_(application_ids))
        .order_by(ApplicationComment.created_at.asc())
    )
    for comment in result.scalars().all():
        grouped[comment.application_id].append(comment)
    return grouped


# ------------------------------------------------------------
# TRANSITIONS
# ------------------------------------------------------------
async def _transition(
    session: AsyncSession,
    application: Application,
    expected: WorkflowState,
    target: WorkflowState,
    actor: User,
    decision: str,
    comment: Optional[str],
    **extra_values,
) -> Application:
    """
    Conditional UPDATE guarded by the expected (status, workflow_level) pair,
    plus the comment row, in one transaction. Losing a race surfaces as
    InvalidStateError and leaves nothing behind.
    """
    now = datetime.now(timezone.utc)
    result = await session.execute(
        update(Application)
        .where(
            Application.id == application.id,
            Application.status == expected.status,
            Application.workflow_level == expected.workflow_level,
        )
        .values(
            status=target.status,
            workflow_level=target.workflow_level,
            updated_at=now,
            **extra_values,
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        await session.rollback()
        logger.warning(
            f"Stale transition on {application.id}: expected "
            f"{expected.status.value}@{expected.workflow_level.value}"
        )
        raise InvalidStateError("Application was changed by another request; reload and try again")

    session.add(
        ApplicationComment(
            application_id=application.id,
            reviewer_id=actor.id,
            reviewer_role=actor.role.value,
            decision=decision,
            comment=comment,
            created_at=now,
        )
    )

    await _commit(session, "update application status")
    await session.refresh(application)
    return application


async def apply_review(
    session: AsyncSession,
    caller: User,
    application: Application,
    expected: WorkflowState,
    decision: ReviewDecision,
    comment: Optional[str] = None,
) -> Application:
    """
    Validates ``decision`` against ``expected`` (the state the caller saw)
    and persists it. Split from update_application_status so that a caller
    holding an old snapshot goes through the same guarded write.
    """
    if is_terminal(expected):
        raise InvalidStateError(
            f"Application is already {expected.status.value} and cannot change"
        )

    # Role/tier runs before the decision check, so a reviewer repeating a
    # decision after the application moved past their tier gets 403, not 409.
    permitted = allowed_decisions(caller.role, expected)
    if permitted is None or not in_reviewer_scope(caller, application):
        raise AuthorizationError(
            f"Role {caller.role.value} cannot review an application at "
            f"{expected.status.value}@{expected.workflow_level.value}"
        )
    if decision not in permitted:
        raise InvalidStateError(
            f"{decision.value} is not available at "
            f"{expected.status.value}@{expected.workflow_level.value}"
        )

    target = apply_decision(expected, decision)
    application = await _transition(
        session, application, expected, target, caller, decision.value, comment
    )

    logger.info(
        f"Application {application.id}: {expected.status.value}@{expected.workflow_level.value} "
        f"-[{decision.value} by {caller.role.value}]-> "
        f"{target.status.value}@{target.workflow_level.value}"
    )
    return application


async def update_application_status(
    session: AsyncSession,
    caller: User,
    application_id,
    decision: ReviewDecision,
    comment: Optional[str] = None,
) -> Application:

    application = await session.get(Application, _as_uuid(application_id))
    if application is None:
        raise NotFoundError("Application not found")

    expected = state_from_columns(application.status, application.workflow_level)
    comment = comment.strip() if comment and comment.strip() else None
    return await apply_review(session, caller, application, expected, decision, comment)


async def cancel_application(session: AsyncSession, caller: User, application_id) -> Application:
    """Soft delete: PENDING -> REJECTED@COMPLETED with is_cancelled set."""
    application = await get_application(session, caller, application_id)

    if application.applicant_id != caller.id:
        raise AuthorizationError("Only the applicant can cancel an application")

    expected = state_from_columns(application.status, application.workflow_level)
    if not isinstance(expected, Pending):
        raise InvalidStateError("Only pending applications can be cancelled")

    application = await _transition(
        session,
        application,
        expected,
        Rejected(),
        caller,
        CANCEL_DECISION,
        "Cancelled by applicant",
        is_cancelled=True,
    )
    logger.info(f"Application {application.id} cancelled by applicant")
    return application

