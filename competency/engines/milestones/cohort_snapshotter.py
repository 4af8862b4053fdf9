"""
Cohort Percentile Snapshotter.

For every PGY-year cohort of a program, computes the distribution of four
operational metrics and appends one dated CohortSnapshot per metric.
"""

import math
import uuid
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy import case, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from competency.kernel.models import (
    CohortSnapshot,
    MembershipStatus,
    MetricType,
    MilestoneProgress,
    OralBoardSession,
    OralBoardStatus,
    Program,
    ProgramMember,
    ProgramRole,
    QuizAttempt,
    UserCaseProgress,
    utcnow,
)
from competency.logging_config import get_logger

logger = get_logger(__name__)

PERCENTILES = (10, 25, 50, 75, 90)


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Linear interpolation between order statistics.

    index = p/100 * (n-1); an integral index returns that order statistic
    exactly, otherwise the neighbours are blended. Rounded to one decimal.
    """
    if not sorted_values:
        return 0.0
    idx = (p / 100.0) * (len(sorted_values) - 1)
    lower = math.floor(idx)
    upper = math.ceil(idx)
    if lower == upper:
        return round(float(sorted_values[lower]), 1)
    weight = idx - lower
    value = sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight
    return round(value, 1)


def percentile_set(values: Sequence[float]) -> Dict[str, float]:
    """{p10, p25, p50, p75, p90, mean} for a non-empty value list."""
    ordered = sorted(float(v) for v in values)
    result = {f"p{p}": percentile(ordered, p) for p in PERCENTILES}
    result["mean"] = round(sum(ordered) / len(ordered), 1)
    return result


MetricQuery = Callable[[AsyncSession, uuid.UUID], Awaitable[Optional[float]]]


async def _scalar(session: AsyncSession, q) -> Optional[float]:
    value = (await session.execute(q)).scalar_one_or_none()
    return float(value) if value is not None else None


async def _quiz_accuracy(session: AsyncSession, user_id: uuid.UUID) -> Optional[float]:
    correct = case((QuizAttempt.correct.is_(True), 1.0), else_=0.0)
    q = select(func.avg(correct) * 100).where(QuizAttempt.user_id == user_id)
    return await _scalar(session, q)


async def _cases_reviewed(session: AsyncSession, user_id: uuid.UUID) -> Optional[float]:
    q = select(func.count(distinct(UserCaseProgress.case_id))).where(UserCaseProgress.user_id == user_id)
    return await _scalar(session, q)


async def _milestone_avg(session: AsyncSession, user_id: uuid.UUID) -> Optional[float]:
    q = select(func.avg(MilestoneProgress.current_level)).where(MilestoneProgress.user_id == user_id)
    return await _scalar(session, q)


async def _oral_board_score(session: AsyncSession, user_id: uuid.UUID) -> Optional[float]:
    q = select(func.avg(OralBoardSession.score)).where(
        OralBoardSession.user_id == user_id,
        OralBoardSession.status == OralBoardStatus.COMPLETED.value,
        OralBoardSession.score.is_not(None),
    )
    return await _scalar(session, q)


METRIC_QUERIES: Dict[MetricType, MetricQuery] = {
    MetricType.QUIZ_ACCURACY: _quiz_accuracy,
    MetricType.CASES_REVIEWED: _cases_reviewed,
    MetricType.MILESTONE_AVG: _milestone_avg,
    MetricType.ORAL_BOARD_SCORE: _oral_board_score,
}


class CohortSnapshotter:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _resident_filter(self, program_id: uuid.UUID):
        return (
            ProgramMember.program_id == program_id,
            ProgramMember.status == MembershipStatus.ACTIVE.value,
            ProgramMember.role == ProgramRole.RESIDENT.value,
        )

    async def _cohorts(self, program_id: uuid.UUID) -> Dict[int, List[uuid.UUID]]:
        q = (
            select(ProgramMember.pgy_year, ProgramMember.user_id)
            .where(*self._resident_filter(program_id), ProgramMember.pgy_year.is_not(None))
            .order_by(ProgramMember.pgy_year)
        )
        cohorts: Dict[int, List[uuid.UUID]] = {}
        for pgy_year, user_id in (await self.session.execute(q)).all():
            cohorts.setdefault(pgy_year, []).append(user_id)
        return cohorts

    async def _metric_values(self, metric: MetricType, user_ids: Sequence[uuid.UUID]) -> List[float]:
        query = METRIC_QUERIES[metric]
        values: List[float] = []
        for user_id in user_ids:
            value = await query(self.session, user_id)
            if value is not None:
                values.append(value)
        return values

    async def _snapshot_metric(
        self,
        program_id: uuid.UUID,
        snapshot_date: date,
        pgy_year: int,
        metric: MetricType,
        user_ids: Sequence[uuid.UUID],
    ) -> Optional[Dict[str, Any]]:
        """Write one cohort/metric row. None when no resident has a value."""
        values = await self._metric_values(metric, user_ids)
        if not values:
            return None

        percentiles = percentile_set(values)
        self.session.add(
            CohortSnapshot(
                program_id=program_id,
                snapshot_date=snapshot_date,
                pgy_year=pgy_year,
                metric_type=metric.value,
                percentiles=percentiles,
                sample_size=len(values),
            )
        )
        await self.session.flush()
        return {
            "pgy_year": pgy_year,
            "metric_type": metric.value,
            "percentiles": percentiles,
            "sample_size": len(values),
        }

    async def generate_snapshot(
        self,
        program_id: uuid.UUID,
        snapshot_date: Optional[date] = None,
    ) -> Optional[List[Dict[str, Any]]]:
        """
        Append today's snapshots for every cohort and metric.

        Returns None for an unknown program (nothing written). Cohort/metric
        combinations without any values are skipped.
        """
        if await self.session.get(Program, program_id) is None:
            return None

        snapshot_date = snapshot_date or utcnow().date()
        results: List[Dict[str, Any]] = []

        for pgy_year, user_ids in (await self._cohorts(program_id)).items():
            for metric in MetricType:
                try:
                    async with self.session.begin_nested():
                        row = await self._snapshot_metric(program_id, snapshot_date, pgy_year, metric, user_ids)
                except Exception:
                    logger.exception(
                        "Cohort metric failed; skipping",
                        extra={"program_id": str(program_id), "pgy_year": pgy_year, "metric": metric.value},
                    )
                    continue
                if row:
                    results.append(row)

        logger.info(
            "Cohort snapshot generated",
            extra={"program_id": str(program_id), "rows": len(results)},
        )
        return results
