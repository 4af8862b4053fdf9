"""Integration tests for cohort snapshots and program reporting."""

import uuid
from datetime import date

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from competency.engines.milestones.cohort_snapshotter import CohortSnapshotter
from competency.engines.milestones.reporting import ProgramReporter
from competency.kernel.models import (
    CohortSnapshot,
    MetricType,
    MilestoneProgress,
    OralBoardSession,
    OralBoardStatus,
    QuizAttempt,
    UserCaseProgress,
    utcnow,
)


@pytest.fixture
def snapshot_day() -> date:
    return date(2026, 10, 19)


async def _cohort_with_oral_boards(db_session, program, enroll, make_user, make_case, scores, pgy_year=2):
    case = await make_case()
    residents = []
    for score in scores:
        resident = await make_user()
        await enroll(program, resident, pgy_year=pgy_year)
        db_session.add(
            OralBoardSession(
                user_id=resident.id,
                case_id=case.id,
                status=OralBoardStatus.COMPLETED.value,
                score=score,
                completed_at=utcnow(),
            )
        )
        residents.append(resident)
    await db_session.flush()
    return residents, case


@pytest.mark.asyncio
async def test_snapshot_percentiles(db_session: AsyncSession, program, enroll, make_user, make_case, snapshot_day):
    await _cohort_with_oral_boards(db_session, program, enroll, make_user, make_case, [100, 60, 90, 70, 80])

    results = await CohortSnapshotter(db_session).generate_snapshot(program.id, snapshot_day)

    by_metric = {r["metric_type"]: r for r in results}
    oral = by_metric["oral_board_score"]
    assert oral["pgy_year"] == 2
    assert oral["sample_size"] == 5
    assert oral["percentiles"]["p50"] == 80
    assert oral["percentiles"]["p10"] == 64.0
    assert oral["percentiles"]["mean"] == 80.0

    # nobody has quiz attempts or milestone progress
    assert "quiz_accuracy" not in by_metric
    assert "milestone_avg" not in by_metric
    # zero counts are real values
    assert by_metric["cases_reviewed"]["sample_size"] == 5
    assert by_metric["cases_reviewed"]["percentiles"]["p90"] == 0.0


@pytest.mark.asyncio
async def test_snapshot_metrics(db_session: AsyncSession, program, enroll, make_user, make_case, snapshot_day):
    residents, case = await _cohort_with_oral_boards(db_session, program, enroll, make_user, make_case, [75, 85])
    first, second = residents
    other_case = await make_case(title="Second case")
    db_session.add_all([
        QuizAttempt(user_id=first.id, case_id=case.id, correct=True),
        QuizAttempt(user_id=first.id, case_id=case.id, correct=False),
        QuizAttempt(user_id=second.id, case_id=case.id, correct=True),
        UserCaseProgress(user_id=first.id, case_id=case.id),
        UserCaseProgress(user_id=first.id, case_id=other_case.id),
        MilestoneProgress(user_id=first.id, milestone_id="DR-PC2", current_level=2.0),
        MilestoneProgress(user_id=first.id, milestone_id="DR-MK1", current_level=3.0),
    ])
    await db_session.flush()

    results = await CohortSnapshotter(db_session).generate_snapshot(program.id, snapshot_day)
    by_metric = {r["metric_type"]: r for r in results}

    # accuracies 50 and 100
    assert by_metric["quiz_accuracy"]["percentiles"]["p50"] == 75.0
    # cases reviewed 2 and 0
    assert by_metric["cases_reviewed"]["percentiles"]["mean"] == 1.0
    # only the first resident has progress rows
    assert by_metric["milestone_avg"]["sample_size"] == 1
    assert by_metric["milestone_avg"]["percentiles"]["p50"] == 2.5


@pytest.mark.asyncio
async def test_snapshots_are_append_only(db_session: AsyncSession, program, enroll, make_user, make_case, snapshot_day):
    await _cohort_with_oral_boards(db_session, program, enroll, make_user, make_case, [70, 80])
    snapshotter = CohortSnapshotter(db_session)

    await snapshotter.generate_snapshot(program.id, snapshot_day)
    await snapshotter.generate_snapshot(program.id, snapshot_day)

    count = (
        await db_session.execute(select(func.count(CohortSnapshot.id)).where(CohortSnapshot.program_id == program.id))
    ).scalar_one()
    assert count == 4


@pytest.mark.asyncio
async def test_unknown_program_writes_nothing(db_session: AsyncSession):
    assert await CohortSnapshotter(db_session).generate_snapshot(uuid.uuid4()) is None
    count = (await db_session.execute(select(func.count(CohortSnapshot.id)))).scalar_one()
    assert count == 0


@pytest.mark.asyncio
async def test_residents_without_pgy_year_are_excluded(db_session: AsyncSession, program, enroll, make_user, snapshot_day):
    resident = await make_user()
    await enroll(program, resident, pgy_year=None)
    assert await CohortSnapshotter(db_session).generate_snapshot(program.id, snapshot_day) == []


@pytest.mark.asyncio
async def test_cohort_stats_filters_by_pgy(db_session: AsyncSession, program, enroll, make_user, make_case, snapshot_day):
    await _cohort_with_oral_boards(db_session, program, enroll, make_user, make_case, [70], pgy_year=1)
    await _cohort_with_oral_boards(db_session, program, enroll, make_user, make_case, [80], pgy_year=3)
    await CohortSnapshotter(db_session).generate_snapshot(program.id, snapshot_day)

    reporter = ProgramReporter(db_session)
    everything = await reporter.cohort_stats(program.id)
    pgy3 = await reporter.cohort_stats(program.id, pgy_year=3)

    assert len(everything) == 4
    assert {s.pgy_year for s in pgy3} == {3}
    assert len(pgy3) == 2


@pytest.mark.asyncio
async def test_milestone_report(db_session: AsyncSession, program, enroll, make_user):
    resident = await make_user(display_name="Report Resident")
    await enroll(program, resident, pgy_year=2)
    db_session.add(MilestoneProgress(user_id=resident.id, milestone_id="DR-PC2", current_level=2.6, activity_count=12))
    await db_session.flush()

    report = await ProgramReporter(db_session).milestone_report(program.id)

    assert report["program"]["name"] == "Diagnostic Radiology"
    assert len(report["milestone_definitions"]) == 15
    assert len(report["residents"]) == 1
    rows = {m["id"]: m for m in report["residents"][0]["milestones"]}
    assert rows["DR-PC2"]["current_level"] == 2.6
    assert rows["DR-PC2"]["activity_count"] == 12
    assert rows["DR-PC1"]["current_level"] is None


@pytest.mark.asyncio
async def test_milestone_report_unknown_program(db_session: AsyncSession):
    assert await ProgramReporter(db_session).milestone_report(uuid.uuid4()) is None


class _BrokenQuizSnapshotter(CohortSnapshotter):
    """Quiz accuracy query fails at the database."""

    async def _metric_values(self, metric, user_ids):
        if metric == MetricType.QUIZ_ACCURACY:
            await self.session.execute(text("SELECT missing_column FROM quiz_attempts"))
        return await super()._metric_values(metric, user_ids)


@pytest.mark.asyncio
async def test_failing_metric_is_skipped(db_session: AsyncSession, program, enroll, make_user, make_case, snapshot_day):
    residents, case = await _cohort_with_oral_boards(db_session, program, enroll, make_user, make_case, [75, 85])
    db_session.add_all([QuizAttempt(user_id=r.id, case_id=case.id, correct=True) for r in residents])
    await db_session.flush()

    results = await _BrokenQuizSnapshotter(db_session).generate_snapshot(program.id, snapshot_day)

    metrics = {r["metric_type"] for r in results}
    assert "quiz_accuracy" not in metrics
    assert {"oral_board_score", "cases_reviewed"} <= metrics
    stored = (
        await db_session.execute(select(func.count(CohortSnapshot.id)).where(CohortSnapshot.program_id == program.id))
    ).scalar_one()
    assert stored == len(results)
