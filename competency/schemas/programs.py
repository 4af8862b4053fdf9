"""
Pydantic schemas for program-level API (at-risk, cohort benchmarks, reports).
"""

import uuid
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class WeakMilestone(BaseModel):
    id: str
    subdomain: str
    level: float


class AtRiskResident(BaseModel):
    user_id: uuid.UUID
    display_name: str
    pgy_year: Optional[int] = None
    avg_level: float
    expected_level: float
    gap: float
    assessed_count: int
    weak_milestones: List[WeakMilestone]
    risk_level: str


class AtRiskResponse(BaseModel):
    at_risk: List[AtRiskResident]
    count: int


class CohortSnapshotItem(BaseModel):
    pgy_year: int
    metric_type: str
    percentiles: Dict[str, float]
    sample_size: int


class CohortSnapshotResponse(BaseModel):
    success: bool = True
    snapshots: List[CohortSnapshotItem]


class StoredCohortSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    program_id: uuid.UUID
    snapshot_date: date
    pgy_year: int
    metric_type: str
    percentiles: Dict[str, float]
    sample_size: int


class CohortStatsResponse(BaseModel):
    snapshots: List[StoredCohortSnapshot]


class ReportMilestoneRow(BaseModel):
    id: str
    domain: str
    subdomain: str
    current_level: Optional[float] = None
    activity_count: int
    last_assessed: Optional[datetime] = None


class ReportResident(BaseModel):
    user_id: uuid.UUID
    display_name: str
    pgy_year: Optional[int] = None
    milestones: List[ReportMilestoneRow]


class ReportProgram(BaseModel):
    id: uuid.UUID
    name: str
    institution: Optional[str] = None
    accreditation_id: Optional[str] = None


class MilestoneDefinition(BaseModel):
    id: str
    domain: str
    subdomain: str
    description: str


class MilestoneReportResponse(BaseModel):
    program: ReportProgram
    generated_at: datetime
    residents: List[ReportResident]
    milestone_definitions: List[MilestoneDefinition]
