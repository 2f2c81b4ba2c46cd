# app/schemas/application.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime

from app.models.enums import ApplicationStatus, ReviewDecision, WorkflowLevel


# ============================================================
# STUDENT → request body on submission
# ============================================================
class ApplicationPayload(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str = Field(min_length=1)
    proof_file_url: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ApplicationCreate(BaseModel):
    type: str = Field(min_length=1, max_length=100, examples=["LEAVE", "CERTIFICATE"])
    payload: ApplicationPayload


# ============================================================
# REVIEWER → status update
# ============================================================
class StatusUpdateRequest(BaseModel):
    decision: ReviewDecision
    comment: Optional[str] = Field(default=None, max_length=2000)


# ============================================================
# READ MODELS
# ============================================================
class ReviewerCommentRead(BaseModel):
    reviewer_id: UUID
    reviewer_role: str
    decision: str
    comment: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplicationRead(BaseModel):
    id: UUID
    applicant_id: UUID
    type: str
    title: str
    description: str
    proof_file_url: Optional[str]
    details: Dict[str, Any]
    status: ApplicationStatus
    workflow_level: WorkflowLevel
    mentor_id: Optional[UUID]
    department_id: Optional[UUID]
    is_cancelled: bool
    created_at: datetime
    updated_at: datetime
    reviewer_comments: List[ReviewerCommentRead] = []

    model_config = ConfigDict(from_attributes=True)
