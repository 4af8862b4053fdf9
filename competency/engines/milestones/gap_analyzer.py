"""
Gap Analyzer - compares a trainee's persisted milestone levels with the
level expected for their post-graduate year.

Expected levels by PGY year:
    PGY-1: 1.5, PGY-2: 2.0, PGY-3: 2.5, PGY-4: 3.0, PGY-5: 3.5, capped at 4.0
"""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from competency.engines.milestones.level_calculator import MIN_LEVEL
from competency.kernel.models import (
    MembershipStatus,
    Milestone,
    MilestoneProgress,
    ProgramMember,
)

DEFAULT_EXPECTED_LEVEL = 3.0
EXPECTED_LEVEL_CAP = 4.0
LEVEL_PER_PGY_YEAR = 0.5


class GapPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def expected_level(pgy_year: Optional[int]) -> float:
    """Level a trainee should have reached by their PGY year. 0 or None means unknown."""
    if not pgy_year:
        return DEFAULT_EXPECTED_LEVEL
    return min(1.0 + pgy_year * LEVEL_PER_PGY_YEAR, EXPECTED_LEVEL_CAP)


def gap_priority(gap: float) -> GapPriority:
    if gap > 1.5:
        return GapPriority.HIGH
    if gap > 0.5:
        return GapPriority.MEDIUM
    return GapPriority.LOW


class GapAnalyzer:
    """Finds milestones where a trainee trails their expected level."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_pgy_year(self, user_id: uuid.UUID) -> Optional[int]:
        q = (
            select(ProgramMember.pgy_year)
            .where(
                ProgramMember.user_id == user_id,
                ProgramMember.status == MembershipStatus.ACTIVE.value,
            )
            .order_by(ProgramMember.created_at)
            .limit(1)
        )
        return (await self.session.execute(q)).scalar_one_or_none()

    async def gap_analysis(self, user_id: uuid.UUID) -> Dict[str, Any]:
        pgy_year = await self.get_pgy_year(user_id)
        expected = expected_level(pgy_year)

        level_col = func.coalesce(MilestoneProgress.current_level, MIN_LEVEL)
        q = (
            select(Milestone, MilestoneProgress)
            .outerjoin(
                MilestoneProgress,
                (MilestoneProgress.milestone_id == Milestone.id)
                & (MilestoneProgress.user_id == user_id),
            )
            .order_by(level_col.asc(), Milestone.display_order)
        )

        gaps: List[Dict[str, Any]] = []
        for milestone, progress in (await self.session.execute(q)).all():
            current = progress.current_level if progress else MIN_LEVEL
            gap = expected - current
            if gap <= 0:
                continue
            gaps.append({
                "milestone_id": milestone.id,
                "domain": milestone.domain,
                "subdomain": milestone.subdomain,
                "current_level": current,
                "expected_level": expected,
                "gap": round(gap, 1),
                "activity_count": progress.activity_count if progress else 0,
                "priority": gap_priority(gap).value,
            })

        gaps.sort(key=lambda g: g["gap"], reverse=True)
        return {
            "expected_level": expected,
            "pgy_year": pgy_year,
            "gaps": gaps,
            "total_gaps": len(gaps),
            "high_priority": sum(1 for g in gaps if g["priority"] == GapPriority.HIGH.value),
            "medium_priority": sum(1 for g in gaps if g["priority"] == GapPriority.MEDIUM.value),
        }
