"""
Milestone endpoints - trainee progress, gap analysis, recalculation and
faculty assessments.
"""

import uuid

from fastapi import APIRouter, HTTPException, status

from competency.api.deps import DbSession
from competency.engines.milestones.gap_analyzer import GapAnalyzer
from competency.engines.milestones.milestone_engine import MilestoneEngine
from competency.kernel.models import User
from competency.schemas.milestones import (
    AssessmentCreateRequest,
    AssessmentCreateResponse,
    GapAnalysisResponse,
    LevelResultResponse,
    MilestoneDetailResponse,
    ProgressSummaryResponse,
    RecalculateResponse,
)

router = APIRouter()


def _milestone_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Milestone not found")


@router.get("/trainees/{trainee_id}/milestones", response_model=ProgressSummaryResponse)
async def get_progress_summary(trainee_id: uuid.UUID, db: DbSession):
    """Milestone levels grouped by competency domain."""
    return await MilestoneEngine(db).progress_summary(trainee_id)


@router.get("/trainees/{trainee_id}/milestones/gaps", response_model=GapAnalysisResponse)
async def get_gap_analysis(trainee_id: uuid.UUID, db: DbSession):
    """Milestones where the trainee trails their PGY-year expectation."""
    return await GapAnalyzer(db).gap_analysis(trainee_id)


@router.post("/trainees/{trainee_id}/milestones/recalculate", response_model=RecalculateResponse)
async def recalculate_milestones(trainee_id: uuid.UUID, db: DbSession):
    """Recompute every milestone for a trainee."""
    results = await MilestoneEngine(db).recalculate_all(trainee_id)
    return RecalculateResponse(milestones=[LevelResultResponse(**r.model_dump()) for r in results])


@router.post(
    "/trainees/{trainee_id}/milestones/{milestone_id}/compute",
    response_model=LevelResultResponse,
)
async def compute_milestone(trainee_id: uuid.UUID, milestone_id: str, db: DbSession):
    """Recompute a single milestone."""
    result = await MilestoneEngine(db).compute_level(trainee_id, milestone_id)
    if result is None:
        raise _milestone_not_found()
    return LevelResultResponse(**result.model_dump())


@router.get(
    "/trainees/{trainee_id}/milestones/{milestone_id}",
    response_model=MilestoneDetailResponse,
)
async def get_milestone_detail(trainee_id: uuid.UUID, milestone_id: str, db: DbSession):
    """Milestone definition with the trainee's stored progress and assessments."""
    detail = await MilestoneEngine(db).milestone_detail(trainee_id, milestone_id)
    if detail is None:
        raise _milestone_not_found()
    return detail


@router.post("/milestones/assessments", response_model=AssessmentCreateResponse)
async def record_assessment(body: AssessmentCreateRequest, db: DbSession):
    """Record a faculty assessment and recompute the affected milestone."""
    if await db.get(User, body.user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    engine = MilestoneEngine(db)
    try:
        result = await engine.record_assessment(
            body.user_id,
            body.milestone_id,
            body.assessor_id,
            body.level,
            body.notes,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if result is None:
        raise _milestone_not_found()

    return AssessmentCreateResponse(
        user_id=body.user_id,
        milestone_id=body.milestone_id,
        level=body.level,
        assessor_id=body.assessor_id,
        updated=LevelResultResponse(**result.model_dump()),
    )
