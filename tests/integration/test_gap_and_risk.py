"""Integration tests for gap analysis and at-risk detection."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from competency.engines.milestones.at_risk import AtRiskDetector
from competency.engines.milestones.gap_analyzer import GapAnalyzer, expected_level, gap_priority
from competency.engines.milestones.milestone_engine import MilestoneEngine
from competency.kernel.models import Case, MembershipStatus, MilestoneProgress, ProgramRole, UserRole


class TestExpectedLevel:
    @pytest.mark.parametrize("pgy,expected", [(1, 1.5), (2, 2.0), (3, 2.5), (4, 3.0), (5, 3.5), (7, 4.0)])
    def test_by_pgy_year(self, pgy, expected):
        assert expected_level(pgy) == expected

    def test_unknown_pgy_year(self):
        assert expected_level(None) == 3.0

    def test_zero_pgy_year_is_unknown(self):
        assert expected_level(0) == 3.0

    def test_priorities(self):
        assert gap_priority(2.0).value == "high"
        assert gap_priority(1.0).value == "medium"
        assert gap_priority(0.5).value == "low"


@pytest.mark.asyncio
async def test_gap_analysis_uses_pgy_year(db_session: AsyncSession, trainee, program, enroll):
    await enroll(program, trainee, pgy_year=2)

    analysis = await GapAnalyzer(db_session).gap_analysis(trainee.id)

    assert analysis["pgy_year"] == 2
    assert analysis["expected_level"] == 2.0
    assert analysis["total_gaps"] == 15
    assert analysis["medium_priority"] == 15
    assert analysis["high_priority"] == 0
    assert all(g["current_level"] == 1.0 for g in analysis["gaps"])


@pytest.mark.asyncio
async def test_gap_analysis_without_membership(db_session: AsyncSession, trainee):
    analysis = await GapAnalyzer(db_session).gap_analysis(trainee.id)

    assert analysis["pgy_year"] is None
    assert analysis["expected_level"] == 3.0
    assert analysis["high_priority"] == 15


@pytest.mark.asyncio
async def test_gap_analysis_skips_met_milestones(db_session: AsyncSession, trainee, program, enroll):
    await enroll(program, trainee, pgy_year=1)
    engine = MilestoneEngine(db_session)
    await engine.record_assessment(trainee.id, "DR-ICS1", None, 5)  # level 3.4

    analysis = await GapAnalyzer(db_session).gap_analysis(trainee.id)

    ids = [g["milestone_id"] for g in analysis["gaps"]]
    assert "DR-ICS1" not in ids
    assert analysis["total_gaps"] == 14
    assert analysis["gaps"][0]["gap"] == 0.5
    assert analysis["gaps"][0]["priority"] == "low"


@pytest.mark.asyncio
async def test_inactive_membership_is_ignored(db_session: AsyncSession, trainee, program, enroll):
    await enroll(program, trainee, pgy_year=1, status=MembershipStatus.INACTIVE)
    assert await GapAnalyzer(db_session).get_pgy_year(trainee.id) is None


@pytest.mark.asyncio
async def test_identify_at_risk(db_session: AsyncSession, program, enroll, make_user):
    senior = await make_user(display_name="Senior Resident")
    junior = await make_user(display_name="Junior Resident")
    middle = await make_user(display_name="Middle Resident")
    departed = await make_user(display_name="Departed Resident")
    faculty = await make_user(display_name="Faculty", role=UserRole.ATTENDING)

    await enroll(program, senior, pgy_year=5)
    await enroll(program, junior, pgy_year=1)
    await enroll(program, middle, pgy_year=3)
    await enroll(program, departed, pgy_year=5, status=MembershipStatus.INACTIVE)
    await enroll(program, faculty, role=ProgramRole.FACULTY)

    at_risk = await AtRiskDetector(db_session).identify_at_risk(program.id)

    assert [r["display_name"] for r in at_risk] == ["Senior Resident", "Middle Resident"]

    senior_entry = at_risk[0]
    assert senior_entry["expected_level"] == 3.5
    assert senior_entry["avg_level"] == 1.0
    assert senior_entry["gap"] == 2.5
    assert senior_entry["risk_level"] == "high"
    assert senior_entry["assessed_count"] == 0
    assert len(senior_entry["weak_milestones"]) == 5
    assert senior_entry["weak_milestones"][0]["id"] == "DR-PC1"

    # gap exactly 1.5 is moderate
    assert at_risk[1]["gap"] == 1.5
    assert at_risk[1]["risk_level"] == "moderate"


@pytest.mark.asyncio
async def test_at_risk_uses_average_of_assessed(db_session: AsyncSession, program, enroll, make_user):
    resident = await make_user(display_name="Strong Resident")
    await enroll(program, resident, pgy_year=4)
    for milestone_id in ("DR-PC1", "DR-PC2"):
        db_session.add(MilestoneProgress(user_id=resident.id, milestone_id=milestone_id, current_level=2.8))
    await db_session.flush()

    assert await AtRiskDetector(db_session).identify_at_risk(program.id) == []


@pytest.mark.asyncio
async def test_at_risk_empty_program(db_session: AsyncSession, program):
    assert await AtRiskDetector(db_session).identify_at_risk(program.id) == []


class _FailingDetector(AtRiskDetector):
    """Hits a constraint violation while evaluating one resident."""

    def __init__(self, session, failing_user_id):
        super().__init__(session)
        self.failing_user_id = failing_user_id

    async def _evaluate(self, member, user):
        if member.user_id == self.failing_user_id:
            self.session.add(Case(title=None))
            await self.session.flush()
        return await super()._evaluate(member, user)


@pytest.mark.asyncio
async def test_at_risk_skips_failing_resident(db_session: AsyncSession, program, enroll, make_user):
    senior = await make_user(display_name="Senior Resident")
    middle = await make_user(display_name="Middle Resident")
    await enroll(program, senior, pgy_year=5)
    await enroll(program, middle, pgy_year=3)

    at_risk = await _FailingDetector(db_session, senior.id).identify_at_risk(program.id)

    assert [r["display_name"] for r in at_risk] == ["Middle Resident"]
