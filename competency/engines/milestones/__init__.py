"""
Milestone Engine - competency scoring for residency milestones.

Evidence from quizzes, differential attempts, oral boards, report reviews and
faculty assessments is decay-weighted (60-day half-life) into a 1.0-5.0 level
per trainee per milestone. Gap analysis, at-risk detection and cohort
percentile snapshots are derived from the persisted levels.
"""

from competency.engines.milestones.relevance import matches_milestone
from competency.engines.milestones.evidence import (
    EvidenceCollector,
    EvidenceItem,
    EvidenceType,
    aggregate,
)
from competency.engines.milestones.level_calculator import calculate_level, count_level, score_level
from competency.engines.milestones.milestone_engine import LevelResult, MilestoneEngine
from competency.engines.milestones.gap_analyzer import GapAnalyzer, expected_level
from competency.engines.milestones.at_risk import AtRiskDetector
from competency.engines.milestones.cohort_snapshotter import CohortSnapshotter, percentile
from competency.engines.milestones.auto_tagger import CaseAutoTagger
from competency.engines.milestones.reporting import ProgramReporter
from competency.engines.milestones.catalog import seed_milestones
from competency.engines.milestones.cme_credits import calculate_cme_credits

__all__ = [
    "matches_milestone",
    "EvidenceCollector",
    "EvidenceItem",
    "EvidenceType",
    "aggregate",
    "calculate_level",
    "count_level",
    "score_level",
    "LevelResult",
    "MilestoneEngine",
    "GapAnalyzer",
    "expected_level",
    "AtRiskDetector",
    "CohortSnapshotter",
    "percentile",
    "CaseAutoTagger",
    "ProgramReporter",
    "seed_milestones",
    "calculate_cme_credits",
]
