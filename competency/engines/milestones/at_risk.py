"""
At-Risk Detector - program-wide roll-up of milestone gaps.

A resident is at risk when their average milestone level trails the level
expected for their PGY year by more than 0.5.
"""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from competency.engines.milestones.gap_analyzer import expected_level
from competency.engines.milestones.level_calculator import MIN_LEVEL
from competency.kernel.models import (
    MembershipStatus,
    Milestone,
    MilestoneProgress,
    ProgramMember,
    ProgramRole,
    User,
)
from competency.logging_config import get_logger

logger = get_logger(__name__)

AT_RISK_THRESHOLD = 0.5
HIGH_RISK_THRESHOLD = 1.5
WEAK_MILESTONE_MARGIN = 0.5
WEAK_MILESTONE_LIMIT = 5


class AtRiskDetector:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _active_residents(self, program_id: uuid.UUID) -> List[tuple]:
        q = (
            select(ProgramMember, User)
            .join(User, ProgramMember.user_id == User.id)
            .where(
                ProgramMember.program_id == program_id,
                ProgramMember.status == MembershipStatus.ACTIVE.value,
                ProgramMember.role == ProgramRole.RESIDENT.value,
            )
        )
        return list((await self.session.execute(q)).all())

    async def _weak_milestones(self, user_id: uuid.UUID, below: float) -> List[Dict[str, Any]]:
        level_col = func.coalesce(MilestoneProgress.current_level, MIN_LEVEL)
        q = (
            select(Milestone.id, Milestone.subdomain, level_col)
            .outerjoin(
                MilestoneProgress,
                (MilestoneProgress.milestone_id == Milestone.id)
                & (MilestoneProgress.user_id == user_id),
            )
            .where(level_col < below)
            .order_by(level_col.asc(), Milestone.display_order)
            .limit(WEAK_MILESTONE_LIMIT)
        )
        return [
            {"id": mid, "subdomain": subdomain, "level": level}
            for mid, subdomain, level in (await self.session.execute(q)).all()
        ]

    async def _evaluate(self, member: ProgramMember, user: User) -> Optional[Dict[str, Any]]:
        expected = expected_level(member.pgy_year)
        q = select(
            func.avg(MilestoneProgress.current_level),
            func.count(MilestoneProgress.id),
        ).where(MilestoneProgress.user_id == member.user_id)
        avg_level, assessed_count = (await self.session.execute(q)).one()
        avg_level = float(avg_level) if avg_level is not None else MIN_LEVEL

        gap = expected - avg_level
        if gap <= AT_RISK_THRESHOLD:
            return None

        return {
            "user_id": member.user_id,
            "display_name": user.label,
            "pgy_year": member.pgy_year,
            "avg_level": round(avg_level, 1),
            "expected_level": expected,
            "gap": round(gap, 1),
            "assessed_count": assessed_count or 0,
            "weak_milestones": await self._weak_milestones(
                member.user_id, expected - WEAK_MILESTONE_MARGIN
            ),
            "risk_level": "high" if gap > HIGH_RISK_THRESHOLD else "moderate",
        }

    async def identify_at_risk(self, program_id: uuid.UUID) -> List[Dict[str, Any]]:
        """Flagged residents of a program, largest gap first."""
        at_risk: List[Dict[str, Any]] = []
        for member, user in await self._active_residents(program_id):
            try:
                async with self.session.begin_nested():
                    entry = await self._evaluate(member, user)
            except Exception:
                logger.exception(
                    "At-risk evaluation failed; skipping resident",
                    extra={"program_id": str(program_id), "user_id": str(member.user_id)},
                )
                continue
            if entry:
                at_risk.append(entry)

        at_risk.sort(key=lambda r: r["gap"], reverse=True)
        return at_risk
