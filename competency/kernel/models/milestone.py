"""
Milestone models - reference catalog, per-trainee progress, faculty
assessments and case tags.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from competency.kernel.models.base import Base, TimestampMixin, generate_uuid


class CompetencyDomain(str, Enum):
    """The six competency domains milestones are grouped under."""
    PATIENT_CARE = "patient_care"
    MEDICAL_KNOWLEDGE = "medical_knowledge"
    SYSTEMS_BASED_PRACTICE = "systems_based_practice"
    PRACTICE_BASED_LEARNING = "practice_based_learning"
    PROFESSIONALISM = "professionalism"
    INTERPERSONAL_COMMUNICATION = "interpersonal_communication"


class Milestone(Base):
    """
    Competency checkpoint reference data. Seeded once, never mutated.

    body_parts/modalities form the applicability filter; an empty list
    applies everywhere.
    """

    __tablename__ = "milestones"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    domain: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    subdomain: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    level_descriptions: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    body_parts: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    modalities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Milestone {self.id}>"


class MilestoneProgress(Base, TimestampMixin):
    """Current computed level for one (trainee, milestone) pair."""

    __tablename__ = "milestone_progress"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    milestone_id: Mapped[str] = mapped_column(
        ForeignKey("milestones.id", ondelete="CASCADE"),
        nullable=False,
    )
    current_level: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    evidence: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    activity_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_assessed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "milestone_id", name="uq_milestone_progress_user_milestone"),
    )


class MilestoneAssessment(Base):
    """Append-only faculty assessment. Input evidence only."""

    __tablename__ = "milestone_assessments"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    milestone_id: Mapped[str] = mapped_column(
        ForeignKey("milestones.id", ondelete="CASCADE"),
        nullable=False,
    )
    assessor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    evidence_type: Mapped[str] = mapped_column(String(50), nullable=False, default="faculty_assessment")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_milestone_assessments_user_milestone", "user_id", "milestone_id"),
    )


class CaseMilestoneTag(Base):
    """Relevance of a teaching case to a milestone. Replaced on re-tag."""

    __tablename__ = "case_milestones"

    case_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cases.id", ondelete="CASCADE"),
        primary_key=True,
    )
    milestone_id: Mapped[str] = mapped_column(
        ForeignKey("milestones.id", ondelete="CASCADE"),
        primary_key=True,
    )
    relevance_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
