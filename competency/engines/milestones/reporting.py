"""
Program reporting - stored cohort snapshot history and the exportable
per-resident milestone report.
"""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from competency.kernel.models import (
    CohortSnapshot,
    MembershipStatus,
    Milestone,
    MilestoneProgress,
    Program,
    ProgramMember,
    ProgramRole,
    User,
    utcnow,
)

COHORT_STATS_LIMIT = 100


class ProgramReporter:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def cohort_stats(self, program_id: uuid.UUID, pgy_year: Optional[int] = None) -> List[CohortSnapshot]:
        """Stored snapshots, newest date first."""
        q = select(CohortSnapshot).where(CohortSnapshot.program_id == program_id)
        if pgy_year is not None:
            q = q.where(CohortSnapshot.pgy_year == pgy_year)
        q = q.order_by(
            CohortSnapshot.snapshot_date.desc(),
            CohortSnapshot.pgy_year,
            CohortSnapshot.metric_type,
        ).limit(COHORT_STATS_LIMIT)
        return list((await self.session.execute(q)).scalars().all())

    async def milestone_report(self, program_id: uuid.UUID) -> Optional[Dict[str, Any]]:
        """Every active resident against every milestone. None for an unknown program."""
        program = await self.session.get(Program, program_id)
        if program is None:
            return None

        milestones = list(
            (await self.session.execute(select(Milestone).order_by(Milestone.display_order))).scalars().all()
        )
        residents_q = (
            select(ProgramMember, User)
            .join(User, ProgramMember.user_id == User.id)
            .where(
                ProgramMember.program_id == program_id,
                ProgramMember.status == MembershipStatus.ACTIVE.value,
                ProgramMember.role == ProgramRole.RESIDENT.value,
            )
            .order_by(ProgramMember.pgy_year, User.display_name)
        )

        residents: List[Dict[str, Any]] = []
        for member, user in (await self.session.execute(residents_q)).all():
            progress_q = select(MilestoneProgress).where(MilestoneProgress.user_id == member.user_id)
            by_milestone = {
                p.milestone_id: p for p in (await self.session.execute(progress_q)).scalars().all()
            }
            residents.append({
                "user_id": member.user_id,
                "display_name": user.label,
                "pgy_year": member.pgy_year,
                "milestones": [
                    {
                        "id": m.id,
                        "domain": m.domain,
                        "subdomain": m.subdomain,
                        "current_level": by_milestone[m.id].current_level if m.id in by_milestone else None,
                        "activity_count": by_milestone[m.id].activity_count if m.id in by_milestone else 0,
                        "last_assessed": by_milestone[m.id].last_assessed if m.id in by_milestone else None,
                    }
                    for m in milestones
                ],
            })

        return {
            "program": {
                "id": program.id,
                "name": program.name,
                "institution": program.institution_name,
                "accreditation_id": program.accreditation_id,
            },
            "generated_at": utcnow(),
            "residents": residents,
            "milestone_definitions": [
                {"id": m.id, "domain": m.domain, "subdomain": m.subdomain, "description": m.description}
                for m in milestones
            ],
        }
