import pytest
from unittest.mock import patch

from app.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from app.core.database import AsyncSessionLocal
from app.core.workflow import Pending, UnderReview, state_from_columns
from app.models.application import Application
from app.models.enums import ApplicationStatus, ReviewDecision, WorkflowLevel
from app.services import application_service, notification_service

PAYLOAD = {"title": "Bonafide certificate", "description": "Needed for a scholarship."}


@pytest.mark.asyncio
async def test_create_sets_initial_state_and_assignment(db_session, campus):
    app = await application_service.create_application(db_session, campus.student, " certificate ", PAYLOAD)

    assert app.status == ApplicationStatus.Pending
    assert app.workflow_level == WorkflowLevel.Mentor
    assert app.type == "CERTIFICATE"
    assert app.applicant_id == campus.student.id
    assert app.mentor_id == campus.mentor.id
    assert app.department_id == campus.department.id
    assert app.is_cancelled is False


@pytest.mark.asyncio
async def test_create_requires_student(db_session, campus):
    for user in (campus.mentor, campus.hod, campus.dean, campus.admin):
        with pytest.raises(AuthorizationError):
            await application_service.create_application(db_session, user, "LEAVE", PAYLOAD)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "app_type, payload",
    [
        ("", PAYLOAD),
        ("LEAVE", {"title": "   ", "description": "x"}),
        ("LEAVE", {"title": "Leave"}),
    ],
)
async def test_create_rejects_incomplete_payload(db_session, campus, app_type, payload):
    with pytest.raises(ValidationError):
        await application_service.create_application(db_session, campus.student, app_type, payload)


@pytest.mark.asyncio
async def test_losing_concurrent_writer_gets_invalid_state(db_session, campus):
    app = await application_service.create_application(db_session, campus.student, "LEAVE", PAYLOAD)
    await application_service.update_application_status(
        db_session, campus.mentor, app.id, ReviewDecision.ApproveForward
    )

    # Two HOD requests both read UNDER_REVIEW@HOD before either writes
    async with AsyncSessionLocal() as first, AsyncSessionLocal() as second:
        first_app = await first.get(Application, app.id)
        second_app = await second.get(Application, app.id)
        first_seen = state_from_columns(first_app.status, first_app.workflow_level)
        second_seen = state_from_columns(second_app.status, second_app.workflow_level)
        assert first_seen == second_seen == UnderReview(WorkflowLevel.HOD)

        winner = await application_service.apply_review(
            first, campus.hod, first_app, first_seen, ReviewDecision.ApproveForward
        )
        assert winner.workflow_level == WorkflowLevel.Dean

        with pytest.raises(InvalidStateError):
            await application_service.apply_review(
                second, campus.hod, second_app, second_seen, ReviewDecision.ApproveForward
            )

    async with AsyncSessionLocal() as check:
        stored = await check.get(Application, app.id)
        assert stored.status == ApplicationStatus.UnderReview
        assert stored.workflow_level == WorkflowLevel.Dean
        comments = await application_service.list_comments(check, app.id)
        # mentor + the single winning HOD action
        assert [c.reviewer_role for c in comments] == ["FACULTY", "HOD"]


@pytest.mark.asyncio
async def test_stale_cancel_loses_to_review(db_session, campus):
    app = await application_service.create_application(db_session, campus.student, "LEAVE", PAYLOAD)

    async with AsyncSessionLocal() as reviewer_session:
        await application_service.update_application_status(
            reviewer_session, campus.mentor, app.id, ReviewDecision.ApproveForward
        )

    # db_session still holds the PENDING snapshot in its identity map
    assert state_from_columns(app.status, app.workflow_level) == Pending()
    with pytest.raises(InvalidStateError):
        await application_service._transition(
            db_session, app, Pending(), state_from_columns("REJECTED", "COMPLETED"),
            campus.student, "CANCEL", None, is_cancelled=True,
        )


@pytest.mark.asyncio
async def test_update_unknown_application(db_session, campus):
    with pytest.raises(NotFoundError):
        await application_service.update_application_status(
            db_session, campus.mentor, "00000000-0000-0000-0000-000000000000", ReviewDecision.Reject
        )
    with pytest.raises(NotFoundError):
        await application_service.update_application_status(
            db_session, campus.mentor, "not-a-uuid", ReviewDecision.Reject
        )


@pytest.mark.asyncio
async def test_mentor_scope_is_enforced(db_session, campus):
    app = await application_service.create_application(db_session, campus.student, "LEAVE", PAYLOAD)

    with pytest.raises(AuthorizationError):
        await application_service.update_application_status(
            db_session, campus.other_faculty, app.id, ReviewDecision.ApproveForward
        )


@pytest.mark.asyncio
async def test_create_requires_mentor_and_department(db_session, campus):
    campus.student.mentor_id = None
    with pytest.raises(ValidationError, match="no assigned mentor"):
        await application_service.create_application(db_session, campus.student, "LEAVE", PAYLOAD)

    campus.other_student.department_id = None
    with pytest.raises(ValidationError, match="no department"):
        await application_service.create_application(db_session, campus.other_student, "LEAVE", PAYLOAD)


@pytest.mark.asyncio
async def test_unassigned_application_is_closed_to_other_reviewers(db_session, campus):
    app = await application_service.create_application(db_session, campus.student, "LEAVE", PAYLOAD)
    # mentor account removed after submission (FK is SET NULL)
    app.mentor_id = None
    db_session.add(app)
    await db_session.commit()

    for faculty in (campus.mentor, campus.other_faculty):
        with pytest.raises(AuthorizationError):
            await application_service.update_application_status(
                db_session, faculty, app.id, ReviewDecision.ApproveForward
            )
        assert await application_service.list_applications(db_session, faculty) == []

    # still in the applicant's hands
    cancelled = await application_service.cancel_application(db_session, campus.student, app.id)
    assert cancelled.is_cancelled is True


@pytest.mark.asyncio
async def test_hod_scope_is_own_department_only(db_session, campus):
    app = await application_service.create_application(db_session, campus.student, "LEAVE", PAYLOAD)
    await application_service.update_application_status(
        db_session, campus.mentor, app.id, ReviewDecision.ApproveForward
    )

    with pytest.raises(AuthorizationError):
        await application_service.update_application_status(
            db_session, campus.other_hod, app.id, ReviewDecision.Reject
        )
    assert await application_service.list_applications(db_session, campus.other_hod) == []

    updated = await application_service.update_application_status(
        db_session, campus.hod, app.id, ReviewDecision.Reject
    )
    assert updated.status == ApplicationStatus.Rejected


@pytest.mark.asyncio
async def test_repeated_decision_after_tier_moved_on_is_forbidden(db_session, campus):
    app = await application_service.create_application(db_session, campus.student, "LEAVE", PAYLOAD)
    await application_service.update_application_status(
        db_session, campus.mentor, app.id, ReviewDecision.ApproveForward
    )

    # role/tier check runs before the decision check: 403, not 409
    with pytest.raises(AuthorizationError):
        await application_service.update_application_status(
            db_session, campus.mentor, app.id, ReviewDecision.ApproveForward
        )


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_transition(db_session, campus):
    app = await application_service.create_application(db_session, campus.student, "LEAVE", PAYLOAD)
    updated = await application_service.update_application_status(
        db_session, campus.mentor, app.id, ReviewDecision.Reject, "Insufficient details"
    )

    class FailingSession:
        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

        def add(self, obj):
            raise RuntimeError("insert failed")

        async def rollback(self):
            pass

    with patch("app.services.notification_service.AsyncSessionLocal", return_value=FailingSession()):
        await notification_service.notify_application_status(
            {"id": campus.student.id, "name": "Student", "email": campus.student.email},
            {
                "id": updated.id,
                "type": updated.type,
                "title": updated.title,
                "status": updated.status.value,
                "workflow_level": updated.workflow_level.value,
            },
        )

    async with AsyncSessionLocal() as check:
        stored = await check.get(Application, app.id)
        assert stored.status == ApplicationStatus.Rejected
        assert stored.workflow_level == WorkflowLevel.Completed
