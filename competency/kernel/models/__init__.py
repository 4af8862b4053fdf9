"""
Kernel Data Models

SQLAlchemy models for milestone scoring and the collaborator tables it reads.
"""

from competency.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow, as_utc
from competency.kernel.models.user import User, UserRole
from competency.kernel.models.activity import (
    Case,
    QuizAttempt,
    DifferentialAttempt,
    OralBoardSession,
    OralBoardStatus,
    ReportAttempt,
    UserCaseProgress,
)
from competency.kernel.models.milestone import (
    CompetencyDomain,
    Milestone,
    MilestoneProgress,
    MilestoneAssessment,
    CaseMilestoneTag,
)
from competency.kernel.models.program import (
    Program,
    ProgramMember,
    ProgramRole,
    MembershipStatus,
    MetricType,
    CohortSnapshot,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    "as_utc",
    # User
    "User",
    "UserRole",
    # Activity (collaborator-owned)
    "Case",
    "QuizAttempt",
    "DifferentialAttempt",
    "OralBoardSession",
    "OralBoardStatus",
    "ReportAttempt",
    "UserCaseProgress",
    # Milestones
    "CompetencyDomain",
    "Milestone",
    "MilestoneProgress",
    "MilestoneAssessment",
    "CaseMilestoneTag",
    # Programs
    "Program",
    "ProgramMember",
    "ProgramRole",
    "MembershipStatus",
    "MetricType",
    "CohortSnapshot",
]
