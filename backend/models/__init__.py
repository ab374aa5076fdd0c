"""
Module: backend/models/__init__.py
Unified comment style: module docstring + minimal inline notes.
"""
from .base import User, UserRole, UserRoleGrant, ROLE_PRIORITY, primary_role
from .qa import Question, Answer, Review
from .trust import TrustedReviewer
from .workflow import RoleRequest, RoleRequestStatus, AdminRequest, AdminRequestStatus
from .scorecard import ReviewerScorecard
from .moderation import ModerationLog
from .staff import StaffEscalation, StaffDiscussion, EscalationPriority, EscalationStatus

__all__ = [
    "User", "UserRole", "UserRoleGrant", "ROLE_PRIORITY", "primary_role",
    "Question", "Answer", "Review",
    "TrustedReviewer",
    "RoleRequest", "RoleRequestStatus", "AdminRequest", "AdminRequestStatus",
    "ReviewerScorecard",
    "ModerationLog",
    "StaffEscalation", "StaffDiscussion", "EscalationPriority", "EscalationStatus",
]
