"""
Pydantic schemas for milestone API.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LevelResultResponse(BaseModel):
    """Result of computing one milestone."""

    milestone_id: str
    level: float
    activity_count: int
    avg_score: float
    evidence_count: int


class RecalculateResponse(BaseModel):
    success: bool = True
    milestones: List[LevelResultResponse]


class MilestoneProgressItem(BaseModel):
    id: str
    subdomain: str
    description: str
    current_level: float
    activity_count: int
    last_assessed: Optional[datetime] = None


class DomainProgress(BaseModel):
    domain: str
    avg_level: float
    milestones: List[MilestoneProgressItem]


class ProgressSummaryResponse(BaseModel):
    """Trainee's milestone levels grouped by domain."""

    overall_level: float
    domains: List[DomainProgress]
    total_milestones: int
    assessed_count: int


class GapItem(BaseModel):
    milestone_id: str
    domain: str
    subdomain: str
    current_level: float
    expected_level: float
    gap: float
    activity_count: int
    priority: str


class GapAnalysisResponse(BaseModel):
    expected_level: float
    pgy_year: Optional[int] = None
    gaps: List[GapItem]
    total_gaps: int
    high_priority: int
    medium_priority: int


class AssessmentCreateRequest(BaseModel):
    """Faculty assessment of a trainee on one milestone."""

    user_id: uuid.UUID
    milestone_id: str
    assessor_id: Optional[uuid.UUID] = None
    level: int = Field(..., ge=1, le=5)
    notes: Optional[str] = None


class AssessmentCreateResponse(BaseModel):
    success: bool = True
    user_id: uuid.UUID
    milestone_id: str
    level: int
    assessor_id: Optional[uuid.UUID] = None
    updated: LevelResultResponse


class MilestoneSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    domain: str
    subdomain: str
    description: str
    level_descriptions: Dict[str, str]
    body_parts: List[str]
    modalities: List[str]
    display_order: int


class StoredProgress(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current_level: float
    evidence: List[Dict[str, Any]]
    activity_count: int
    last_assessed: Optional[datetime] = None


class AssessmentItem(BaseModel):
    id: uuid.UUID
    assessor_id: Optional[uuid.UUID] = None
    assessor_name: Optional[str] = None
    level: int
    notes: Optional[str] = None
    created_at: datetime


class MilestoneDetailResponse(BaseModel):
    milestone: MilestoneSchema
    progress: Optional[StoredProgress] = None
    assessments: List[AssessmentItem]


class CaseTagItem(BaseModel):
    milestone_id: str
    relevance_score: float
    domain: Optional[str] = None
    subdomain: Optional[str] = None
    description: Optional[str] = None


class CaseTagsResponse(BaseModel):
    case_id: uuid.UUID
    milestones: List[CaseTagItem]
