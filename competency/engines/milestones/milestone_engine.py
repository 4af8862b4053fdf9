"""
Milestone Engine - computes and persists per-trainee milestone levels.

Bound to one AsyncSession per request; holds no state between calls.
"""

import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from competency.engines.milestones.evidence import EvidenceCollector, aggregate, summarize
from competency.engines.milestones.level_calculator import MIN_LEVEL, calculate_level
from competency.kernel.models import (
    Milestone,
    MilestoneAssessment,
    MilestoneProgress,
    User,
    utcnow,
)
from competency.kernel.upsert import upsert
from competency.logging_config import get_logger

logger = get_logger(__name__)


class LevelResult(BaseModel):
    """Outcome of one (trainee, milestone) computation."""

    milestone_id: str
    level: float
    activity_count: int
    avg_score: float
    evidence_count: int


def _round1(value: float) -> float:
    return round(value, 1)


class MilestoneEngine:
    """
    Fuses activity evidence into 1.0-5.0 milestone levels.

    Pipeline per milestone: collect evidence -> decay-weighted aggregate ->
    level buckets -> upsert MilestoneProgress.
    """

    def __init__(self, session: AsyncSession, collector: Optional[EvidenceCollector] = None):
        self.session = session
        self.collector = collector or EvidenceCollector(session)

    async def get_milestone(self, milestone_id: str) -> Optional[Milestone]:
        return await self.session.get(Milestone, milestone_id)

    async def list_milestones(self) -> List[Milestone]:
        result = await self.session.execute(select(Milestone).order_by(Milestone.display_order))
        return list(result.scalars().all())

    async def get_progress_row(self, user_id: uuid.UUID, milestone_id: str) -> Optional[MilestoneProgress]:
        q = (
            select(MilestoneProgress)
            .where(
                MilestoneProgress.user_id == user_id,
                MilestoneProgress.milestone_id == milestone_id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(q)
        return result.scalar_one_or_none()

    async def _upsert_progress(
        self,
        user_id: uuid.UUID,
        milestone_id: str,
        level: float,
        evidence_summary: List[Dict[str, Any]],
        activity_count: int,
        assessed_at: datetime,
    ) -> MilestoneProgress:
        await upsert(
            self.session,
            MilestoneProgress,
            {
                "user_id": user_id,
                "milestone_id": milestone_id,
                "current_level": level,
                "evidence": evidence_summary,
                "activity_count": activity_count,
                "last_assessed": assessed_at,
            },
            conflict_columns=("user_id", "milestone_id"),
        )
        return await self.get_progress_row(user_id, milestone_id)

    async def compute_level(
        self,
        user_id: uuid.UUID,
        milestone_id: str,
        now: Optional[datetime] = None,
    ) -> Optional[LevelResult]:
        """Recompute one milestone for a trainee. None if the milestone is unknown."""
        milestone = await self.get_milestone(milestone_id)
        if milestone is None:
            return None

        now = now or utcnow()
        evidence = await self.collector.collect(user_id, milestone)
        agg = aggregate(evidence, now)
        level = calculate_level(agg.activity_count, agg.score)

        await self._upsert_progress(
            user_id,
            milestone_id,
            level,
            summarize(evidence),
            agg.activity_count,
            now,
        )
        logger.debug(
            "Milestone level computed",
            extra={
                "user_id": str(user_id),
                "milestone_id": milestone_id,
                "milestone_level": level,
                "activity_count": agg.activity_count,
            },
        )
        return LevelResult(
            milestone_id=milestone_id,
            level=level,
            activity_count=agg.activity_count,
            avg_score=round(agg.score, 2),
            evidence_count=len(evidence),
        )

    async def recalculate_all(self, user_id: uuid.UUID) -> List[LevelResult]:
        """
        Recompute every catalog milestone.

        Each milestone runs in its own SAVEPOINT; a failing milestone is rolled
        back and skipped without disturbing the others.
        """
        milestone_ids = [m.id for m in await self.list_milestones()]
        now = utcnow()
        results: List[LevelResult] = []
        for milestone_id in milestone_ids:
            try:
                async with self.session.begin_nested():
                    result = await self.compute_level(user_id, milestone_id, now)
            except Exception:
                logger.exception(
                    "Milestone recalculation failed; skipping",
                    extra={"user_id": str(user_id), "milestone_id": milestone_id},
                )
                continue
            if result:
                results.append(result)
        return results

    async def progress_summary(self, user_id: uuid.UUID) -> Dict[str, Any]:
        """Levels grouped by competency domain, with domain and overall averages."""
        q = (
            select(Milestone, MilestoneProgress)
            .outerjoin(
                MilestoneProgress,
                (MilestoneProgress.milestone_id == Milestone.id)
                & (MilestoneProgress.user_id == user_id),
            )
            .order_by(Milestone.display_order)
        )
        rows = (await self.session.execute(q)).all()

        domains: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        all_levels: List[float] = []
        assessed = 0
        for milestone, progress in rows:
            level = progress.current_level if progress else MIN_LEVEL
            all_levels.append(level)
            if progress:
                assessed += 1
            bucket = domains.setdefault(
                milestone.domain,
                {"domain": milestone.domain, "milestones": [], "avg_level": 0.0},
            )
            bucket["milestones"].append({
                "id": milestone.id,
                "subdomain": milestone.subdomain,
                "description": milestone.description,
                "current_level": level,
                "activity_count": progress.activity_count if progress else 0,
                "last_assessed": progress.last_assessed if progress else None,
            })

        for bucket in domains.values():
            levels = [m["current_level"] for m in bucket["milestones"]]
            bucket["avg_level"] = _round1(sum(levels) / len(levels))

        overall = _round1(sum(all_levels) / len(all_levels)) if all_levels else MIN_LEVEL
        return {
            "overall_level": overall,
            "domains": list(domains.values()),
            "total_milestones": len(rows),
            "assessed_count": assessed,
        }

    async def record_assessment(
        self,
        user_id: uuid.UUID,
        milestone_id: str,
        assessor_id: Optional[uuid.UUID],
        level: int,
        notes: Optional[str] = None,
    ) -> Optional[LevelResult]:
        """
        Append a faculty assessment and recompute the milestone.

        Raises ValueError for a level outside 1-5; returns None for an
        unknown milestone.
        """
        if isinstance(level, bool) or not isinstance(level, int) or not 1 <= level <= 5:
            raise ValueError("level must be an integer between 1 and 5")
        if await self.get_milestone(milestone_id) is None:
            return None

        self.session.add(
            MilestoneAssessment(
                user_id=user_id,
                milestone_id=milestone_id,
                assessor_id=assessor_id,
                level=level,
                notes=notes,
                created_at=utcnow(),
            )
        )
        await self.session.flush()
        logger.info(
            "Faculty assessment recorded",
            extra={"user_id": str(user_id), "milestone_id": milestone_id, "milestone_level": level},
        )
        return await self.compute_level(user_id, milestone_id)

    async def milestone_detail(self, user_id: uuid.UUID, milestone_id: str) -> Optional[Dict[str, Any]]:
        """Reference data, stored progress and faculty assessments for one milestone."""
        milestone = await self.get_milestone(milestone_id)
        if milestone is None:
            return None

        progress = await self.get_progress_row(user_id, milestone_id)
        q = (
            select(MilestoneAssessment, User)
            .outerjoin(User, MilestoneAssessment.assessor_id == User.id)
            .where(
                MilestoneAssessment.user_id == user_id,
                MilestoneAssessment.milestone_id == milestone_id,
            )
            .order_by(MilestoneAssessment.created_at.desc())
        )
        assessments = [
            {
                "id": a.id,
                "assessor_id": a.assessor_id,
                "assessor_name": assessor.label if assessor else None,
                "level": a.level,
                "notes": a.notes,
                "created_at": a.created_at,
            }
            for a, assessor in (await self.session.execute(q)).all()
        ]
        return {
            "milestone": milestone,
            "progress": progress,
            "assessments": assessments,
        }
