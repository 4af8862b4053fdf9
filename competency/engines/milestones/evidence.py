"""
Evidence Aggregator & Decay Weighter.

Collects scored activity from five sources for one (trainee, milestone)
pair and reduces it to a single decay-weighted score in [0, 1].

Sources and score mapping:
- quiz:               0 if incorrect, else 0.5 + 0.1 * difficulty (1-5)
- differential:       percentage / 100
- oral_board:         percentage / 100 (completed and scored sessions only)
- case_review:        percentage / 100 (report attempts)
- faculty_assessment: level / 5

Every source except faculty assessments is filtered through the Relevance
Matcher on the attempted case's region/modality.
"""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from competency.engines.milestones.relevance import matches_milestone
from competency.kernel.models import (
    Case,
    DifferentialAttempt,
    Milestone,
    MilestoneAssessment,
    OralBoardSession,
    OralBoardStatus,
    QuizAttempt,
    ReportAttempt,
    as_utc,
    utcnow,
)


class EvidenceType(str, Enum):
    """Evidence source tags."""
    QUIZ = "quiz"
    DIFFERENTIAL = "differential"
    ORAL_BOARD = "oral_board"
    CASE_REVIEW = "case_review"
    FACULTY_ASSESSMENT = "faculty_assessment"


# Base weights, selected once per evaluation. Without faculty input the
# faculty share is spread proportionally so each table sums to 1.0.
WEIGHTS_WITH_FACULTY: Dict[EvidenceType, float] = {
    EvidenceType.QUIZ: 0.3,
    EvidenceType.DIFFERENTIAL: 0.25,
    EvidenceType.ORAL_BOARD: 0.25,
    EvidenceType.CASE_REVIEW: 0.1,
    EvidenceType.FACULTY_ASSESSMENT: 0.1,
}
WEIGHTS_WITHOUT_FACULTY: Dict[EvidenceType, float] = {
    EvidenceType.QUIZ: 0.35,
    EvidenceType.DIFFERENTIAL: 0.275,
    EvidenceType.ORAL_BOARD: 0.275,
    EvidenceType.CASE_REVIEW: 0.1,
}

HALF_LIFE_DAYS = 60.0
DEFAULT_QUIZ_DIFFICULTY = 2
SUMMARY_LIMIT = 50


def select_weight_table(has_faculty_assessment: bool) -> Dict[EvidenceType, float]:
    return WEIGHTS_WITH_FACULTY if has_faculty_assessment else WEIGHTS_WITHOUT_FACULTY


class EvidenceItem(BaseModel):
    """One scored activity contributing to a milestone."""

    evidence_type: EvidenceType
    source_id: uuid.UUID
    score: float
    occurred_at: datetime
    base_weight: float = 0.0

    def summary(self) -> Dict[str, Any]:
        return {
            "type": self.evidence_type.value,
            "id": str(self.source_id),
            "score": round(self.score, 2),
            "date": self.occurred_at.isoformat(),
        }


class AggregateScore(BaseModel):
    """Weighted reduction of an evidence set."""

    score: float
    activity_count: int
    total_weight: float


def _clamp_unit(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def quiz_score(correct: bool, difficulty: Optional[int]) -> float:
    if not correct:
        return 0.0
    tier = min(max(difficulty or DEFAULT_QUIZ_DIFFICULTY, 1), 5)
    return _clamp_unit(0.5 + 0.1 * tier)


def percentage_score(percentage: Optional[float]) -> float:
    return _clamp_unit((percentage or 0.0) / 100.0)


def faculty_score(level: int) -> float:
    return _clamp_unit(level / 5.0)


def decay_factor(occurred_at: datetime, now: datetime) -> float:
    """0.5 ** (age_days / 60). Future-dated rows count as age 0."""
    age_days = max((now - as_utc(occurred_at)).total_seconds() / 86400.0, 0.0)
    return math.pow(0.5, age_days / HALF_LIFE_DAYS)


def effective_weight(item: EvidenceItem, now: datetime) -> float:
    return item.base_weight * decay_factor(item.occurred_at, now)


def aggregate(items: Sequence[EvidenceItem], now: Optional[datetime] = None) -> AggregateScore:
    """Decay-weighted mean of item scores; 0 when there is no usable weight."""
    now = now or utcnow()
    weighted_sum = 0.0
    total_weight = 0.0
    for item in items:
        w = effective_weight(item, now)
        weighted_sum += item.score * w
        total_weight += w

    score = weighted_sum / total_weight if total_weight > 0 else 0.0
    return AggregateScore(score=score, activity_count=len(items), total_weight=total_weight)


def assign_base_weights(items: List[EvidenceItem]) -> List[EvidenceItem]:
    """Stamp each item with its base weight from the table chosen for this set."""
    has_faculty = any(i.evidence_type == EvidenceType.FACULTY_ASSESSMENT for i in items)
    table = select_weight_table(has_faculty)
    for item in items:
        item.base_weight = table[item.evidence_type]
    return items


def summarize(items: Sequence[EvidenceItem], limit: int = SUMMARY_LIMIT) -> List[Dict[str, Any]]:
    """Most recent `limit` items, reduced to type/id/rounded score/date."""
    recent = sorted(items, key=lambda i: as_utc(i.occurred_at), reverse=True)
    return [i.summary() for i in recent[:limit]]


@dataclass(frozen=True)
class EvidenceSource:
    """
    Descriptor for one evidence-producing table.

    `build_query` selects (row, Case) pairs for a trainee (or bare rows when
    `joins_case` is False); `score` and `occurred_at` map a row onto the
    common evidence shape.
    """

    evidence_type: EvidenceType
    build_query: Callable[[uuid.UUID, Milestone], Select]
    score: Callable[[Any, Optional[Case]], float]
    occurred_at: Callable[[Any], Optional[datetime]]
    joins_case: bool = True


def _case_joined(model, user_id: uuid.UUID, order_col) -> Select:
    return (
        select(model, Case)
        .join(Case, model.case_id == Case.id)
        .where(model.user_id == user_id)
        .order_by(order_col.desc())
    )


EVIDENCE_SOURCES: Sequence[EvidenceSource] = (
    EvidenceSource(
        evidence_type=EvidenceType.QUIZ,
        build_query=lambda uid, m: _case_joined(QuizAttempt, uid, QuizAttempt.attempted_at),
        score=lambda row, case: quiz_score(row.correct, case.difficulty if case else None),
        occurred_at=lambda row: row.attempted_at,
    ),
    EvidenceSource(
        evidence_type=EvidenceType.DIFFERENTIAL,
        build_query=lambda uid, m: _case_joined(DifferentialAttempt, uid, DifferentialAttempt.created_at),
        score=lambda row, case: percentage_score(row.score),
        occurred_at=lambda row: row.created_at,
    ),
    EvidenceSource(
        evidence_type=EvidenceType.ORAL_BOARD,
        build_query=lambda uid, m: _case_joined(
            OralBoardSession, uid, OralBoardSession.completed_at
        ).where(
            OralBoardSession.status == OralBoardStatus.COMPLETED.value,
            OralBoardSession.score.is_not(None),
        ),
        score=lambda row, case: percentage_score(row.score),
        occurred_at=lambda row: row.completed_at or row.started_at,
    ),
    EvidenceSource(
        evidence_type=EvidenceType.CASE_REVIEW,
        build_query=lambda uid, m: _case_joined(ReportAttempt, uid, ReportAttempt.created_at),
        score=lambda row, case: percentage_score(row.score),
        occurred_at=lambda row: row.created_at,
    ),
    EvidenceSource(
        evidence_type=EvidenceType.FACULTY_ASSESSMENT,
        build_query=lambda uid, m: (
            select(MilestoneAssessment)
            .where(
                MilestoneAssessment.user_id == uid,
                MilestoneAssessment.milestone_id == m.id,
            )
            .order_by(MilestoneAssessment.created_at.desc())
        ),
        score=lambda row, case: faculty_score(row.level),
        occurred_at=lambda row: row.created_at,
        joins_case=False,
    ),
)


class EvidenceCollector:
    """Runs every EvidenceSource for a trainee and milestone."""

    def __init__(self, session: AsyncSession, sources: Sequence[EvidenceSource] = EVIDENCE_SOURCES):
        self.session = session
        self.sources = sources

    async def _collect_source(
        self,
        source: EvidenceSource,
        user_id: uuid.UUID,
        milestone: Milestone,
    ) -> List[EvidenceItem]:
        result = await self.session.execute(source.build_query(user_id, milestone))
        items: List[EvidenceItem] = []
        for row in result.all():
            if source.joins_case:
                record, case = row[0], row[1]
                if not matches_milestone(
                    case.body_part,
                    case.modality,
                    milestone.body_parts,
                    milestone.modalities,
                ):
                    continue
            else:
                record, case = row[0], None

            occurred_at = source.occurred_at(record)
            if occurred_at is None:
                continue
            items.append(
                EvidenceItem(
                    evidence_type=source.evidence_type,
                    source_id=record.id,
                    score=source.score(record, case),
                    occurred_at=as_utc(occurred_at),
                )
            )
        return items

    async def collect(self, user_id: uuid.UUID, milestone: Milestone) -> List[EvidenceItem]:
        """All relevant evidence, stamped with this evaluation's base weights."""
        items: List[EvidenceItem] = []
        for source in self.sources:
            items.extend(await self._collect_source(source, user_id, milestone))
        return assign_base_weights(items)
