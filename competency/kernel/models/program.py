"""
Residency program models - programs, memberships and cohort snapshots.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from competency.kernel.models.base import Base, TimestampMixin, generate_uuid


class ProgramRole(str, Enum):
    """Role of a member within a program."""
    RESIDENT = "resident"
    FACULTY = "faculty"
    PROGRAM_DIRECTOR = "program_director"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class MetricType(str, Enum):
    """Operational metrics benchmarked per PGY-year cohort."""
    QUIZ_ACCURACY = "quiz_accuracy"
    CASES_REVIEWED = "cases_reviewed"
    MILESTONE_AVG = "milestone_avg"
    ORAL_BOARD_SCORE = "oral_board_score"


class Program(Base, TimestampMixin):
    """A residency training program."""

    __tablename__ = "programs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    institution_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    accreditation_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class ProgramMember(Base, TimestampMixin):
    """Membership of a user in a program, with PGY year for residents."""

    __tablename__ = "program_members"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    program_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False, default=ProgramRole.RESIDENT.value)
    pgy_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=MembershipStatus.ACTIVE.value)


class CohortSnapshot(Base):
    """
    Dated percentile summary of one metric across a PGY-year cohort.
    Append-only: a new row per run, prior dates are never rewritten.
    """

    __tablename__ = "cohort_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    program_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False,
    )
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)
    pgy_year: Mapped[int] = mapped_column(Integer, nullable=False)
    metric_type: Mapped[str] = mapped_column(String(50), nullable=False)
    percentiles: Mapped[Dict[str, float]] = mapped_column(JSON, nullable=False)
    sample_size: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index(
            "ix_cohort_snapshots_program_date_pgy_metric",
            "program_id", "snapshot_date", "pgy_year", "metric_type",
        ),
    )
