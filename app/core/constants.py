# app/core/constants.py

from app.models.enums import ReviewDecision, WorkflowLevel
from app.models.user import UserRole

# ==========================================================
# APPROVAL CHAIN
# ==========================================================
TIER_ORDER = [
    WorkflowLevel.Mentor,
    WorkflowLevel.HOD,
    WorkflowLevel.Dean,
    WorkflowLevel.Completed,
]

ALL_DECISIONS = frozenset(ReviewDecision)
FINAL_DECISIONS = frozenset({ReviewDecision.ApproveForward, ReviewDecision.Reject})

# ==========================================================
# ROLE PERMISSIONS
# Keyed by (caller role, application workflow_level).
# ==========================================================

# Normal review of a PENDING / UNDER_REVIEW application at its own tier
REVIEW_POLICY = {
    (UserRole.Faculty, WorkflowLevel.Mentor): ALL_DECISIONS,
    (UserRole.HOD, WorkflowLevel.HOD): ALL_DECISIONS,
    (UserRole.Dean, WorkflowLevel.Dean): FINAL_DECISIONS,  # nothing above DEAN
}

# Intervention on an ESCALATED application, by the tier after the one that escalated
INTERVENTION_POLICY = {
    (UserRole.HOD, WorkflowLevel.Mentor): FINAL_DECISIONS,
    (UserRole.Dean, WorkflowLevel.HOD): FINAL_DECISIONS,
}

REVIEWER_ROLES = frozenset({UserRole.Faculty, UserRole.HOD, UserRole.Dean})
