"""
Pydantic schemas for API request/response validation.
"""

from competency.schemas.common import ErrorResponse, HealthResponse
from competency.schemas.milestones import (
    AssessmentCreateRequest,
    AssessmentCreateResponse,
    CaseTagsResponse,
    GapAnalysisResponse,
    LevelResultResponse,
    MilestoneDetailResponse,
    ProgressSummaryResponse,
    RecalculateResponse,
)
from competency.schemas.programs import (
    AtRiskResponse,
    CohortSnapshotResponse,
    CohortStatsResponse,
    MilestoneReportResponse,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "AssessmentCreateRequest",
    "AssessmentCreateResponse",
    "CaseTagsResponse",
    "GapAnalysisResponse",
    "LevelResultResponse",
    "MilestoneDetailResponse",
    "ProgressSummaryResponse",
    "RecalculateResponse",
    "AtRiskResponse",
    "CohortSnapshotResponse",
    "CohortStatsResponse",
    "MilestoneReportResponse",
]
