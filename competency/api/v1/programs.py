"""
Program endpoints - at-risk residents, cohort benchmarks and the milestone
report.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from competency.api.deps import DbSession
from competency.engines.milestones.at_risk import AtRiskDetector
from competency.engines.milestones.cohort_snapshotter import CohortSnapshotter
from competency.engines.milestones.reporting import ProgramReporter
from competency.schemas.programs import (
    AtRiskResponse,
    CohortSnapshotItem,
    CohortSnapshotResponse,
    CohortStatsResponse,
    MilestoneReportResponse,
    StoredCohortSnapshot,
)

router = APIRouter()


def _program_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Program not found")


@router.get("/{program_id}/at-risk", response_model=AtRiskResponse)
async def get_at_risk(program_id: uuid.UUID, db: DbSession):
    """Residents whose average level trails their PGY-year expectation."""
    at_risk = await AtRiskDetector(db).identify_at_risk(program_id)
    return AtRiskResponse(at_risk=at_risk, count=len(at_risk))


@router.post("/{program_id}/cohort-snapshot", response_model=CohortSnapshotResponse)
async def create_cohort_snapshot(program_id: uuid.UUID, db: DbSession):
    """Append today's percentile snapshot for every PGY-year cohort."""
    results = await CohortSnapshotter(db).generate_snapshot(program_id)
    if results is None:
        raise _program_not_found()
    return CohortSnapshotResponse(snapshots=[CohortSnapshotItem(**r) for r in results])


@router.get("/{program_id}/cohort-stats", response_model=CohortStatsResponse)
async def get_cohort_stats(
    program_id: uuid.UUID,
    db: DbSession,
    pgy_year: Optional[int] = Query(None, ge=1),
):
    """Stored snapshot history, newest first."""
    snapshots = await ProgramReporter(db).cohort_stats(program_id, pgy_year)
    return CohortStatsResponse(snapshots=[StoredCohortSnapshot.model_validate(s) for s in snapshots])


@router.get("/{program_id}/milestone-report", response_model=MilestoneReportResponse)
async def get_milestone_report(program_id: uuid.UUID, db: DbSession):
    """Exportable milestone report for all active residents."""
    report = await ProgramReporter(db).milestone_report(program_id)
    if report is None:
        raise _program_not_found()
    return report
