from enum import Enum

class ApplicationStatus(str, Enum):
    Pending = "PENDING"
    UnderReview = "UNDER_REVIEW"
    Approved = "APPROVED"
    Rejected = "REJECTED"
    Escalated = "ESCALATED"


class WorkflowLevel(str, Enum):
    Mentor = "MENTOR"
    HOD = "HOD"
    Dean = "DEAN"
    Completed = "COMPLETED"


class ReviewDecision(str, Enum):
    ApproveForward = "APPROVE_FORWARD"
    Reject = "REJECT"
    Escalate = "ESCALATE"


class NotificationType(str, Enum):
    Application = "APPLICATION"
    System = "SYSTEM"
    Alert = "ALERT"
    Update = "UPDATE"
