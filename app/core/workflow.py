# app/core/workflow.py
"""
Approval workflow state.

The database keeps an application's position as two enum columns
(``status``, ``workflow_level``). In code the pair is lifted into one of five
variants so that a combination like ``APPROVED@HOD`` cannot be built:

    Pending()            PENDING@MENTOR
    UnderReview(tier)    UNDER_REVIEW@HOD | UNDER_REVIEW@DEAN
    Escalated(tier)      ESCALATED@MENTOR | ESCALATED@HOD
    Approved()           APPROVED@COMPLETED
    Rejected()           REJECTED@COMPLETED

``apply_decision`` is the whole transition function. It does not know about
users or the database; role checks come from the policy tables in
``app.core.constants`` and persistence lives in ``application_service``.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Union

from app.core.constants import INTERVENTION_POLICY, REVIEW_POLICY, TIER_ORDER
from app.core.exceptions import InternalError, InvalidStateError
from app.models.enums import ApplicationStatus, ReviewDecision, WorkflowLevel
from app.models.user import UserRole


@dataclass(frozen=True)
class Pending:
    status = ApplicationStatus.Pending
    tier = WorkflowLevel.Mentor

    @property
    def workflow_level(self) -> WorkflowLevel:
        return self.tier


@dataclass(frozen=True)
class UnderReview:
    tier: WorkflowLevel
    status = ApplicationStatus.UnderReview

    def __post_init__(self):
        if self.tier not in (WorkflowLevel.HOD, WorkflowLevel.Dean):
            raise ValueError(f"UNDER_REVIEW cannot sit at {self.tier.value}")

    @property
    def workflow_level(self) -> WorkflowLevel:
        return self.tier


@dataclass(frozen=True)
class Escalated:
    tier: WorkflowLevel
    status = ApplicationStatus.Escalated

    def __post_init__(self):
        if self.tier not in (WorkflowLevel.Mentor, WorkflowLevel.HOD):
            raise ValueError(f"ESCALATED cannot sit at {self.tier.value}")

    @property
    def workflow_level(self) -> WorkflowLevel:
        return self.tier


@dataclass(frozen=True)
class Approved:
    status = ApplicationStatus.Approved
    workflow_level = WorkflowLevel.Completed


@dataclass(frozen=True)
class Rejected:
    status = ApplicationStatus.Rejected
    workflow_level = WorkflowLevel.Completed


WorkflowState = Union[Pending, UnderReview, Escalated, Approved, Rejected]


def is_terminal(state: WorkflowState) -> bool:
    return isinstance(state, (Approved, Rejected))


def next_tier(tier: WorkflowLevel) -> WorkflowLevel:
    if tier == WorkflowLevel.Completed:
        raise InvalidStateError("Application has already completed the workflow")
    return TIER_ORDER[TIER_ORDER.index(tier) + 1]


def _at_tier(tier: WorkflowLevel) -> WorkflowState:
    if tier == WorkflowLevel.Completed:
        return Approved()
    return UnderReview(tier)


def state_from_columns(status, workflow_level) -> WorkflowState:
    """Build the variant for a persisted (status, workflow_level) pair."""
    status = ApplicationStatus(status)
    level = WorkflowLevel(workflow_level)
    try:
        if status == ApplicationStatus.Pending and level == WorkflowLevel.Mentor:
            return Pending()
        if status == ApplicationStatus.UnderReview:
            return UnderReview(level)
        if status == ApplicationStatus.Escalated:
            return Escalated(level)
        if status == ApplicationStatus.Approved and level == WorkflowLevel.Completed:
            return Approved()
        if status == ApplicationStatus.Rejected and level == WorkflowLevel.Completed:
            return Rejected()
    except ValueError:
        pass
    raise InternalError(f"Inconsistent workflow state {status.value}@{level.value}")


def allowed_decisions(role: UserRole, state: WorkflowState) -> Optional[FrozenSet[ReviewDecision]]:
    """
    Decisions ``role`` may take on ``state``, or None when the role has no
    say at this point of the chain at all.
    """
    if is_terminal(state):
        return None
    policy = INTERVENTION_POLICY if isinstance(state, Escalated) else REVIEW_POLICY
    return policy.get((role, state.workflow_level))


def apply_decision(state: WorkflowState, decision: ReviewDecision) -> WorkflowState:
    if is_terminal(state):
        raise InvalidStateError(
            f"Application is already {state.status.value} and cannot change"
        )

    if decision == ReviewDecision.Reject:
        return Rejected()

    if decision == ReviewDecision.ApproveForward:
        if isinstance(state, Escalated):
            # the intervening tier's approval stands in for its own review
            return _at_tier(next_tier(next_tier(state.tier)))
        return _at_tier(next_tier(state.tier))

    if decision == ReviewDecision.Escalate:
        if isinstance(state, Escalated):
            raise InvalidStateError("Application is already escalated")
        if state.tier == WorkflowLevel.Dean:
            raise InvalidStateError("DEAN is the last tier; nothing to escalate to")
        return Escalated(state.tier)

    raise InvalidStateError(f"Unknown decision {decision!r}")
