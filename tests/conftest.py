"""
Pytest fixtures for competency engine tests.
"""

import uuid
from datetime import datetime
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from competency.database import create_engine_for
from competency.engines.milestones.catalog import seed_milestones
from competency.kernel.models import (
    Base,
    Case,
    MembershipStatus,
    Program,
    ProgramMember,
    ProgramRole,
    QuizAttempt,
    User,
    UserRole,
    utcnow,
)


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a test database engine backed by a throwaway SQLite file."""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session with the milestone catalog seeded."""
    async_session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        await seed_milestones(session)
        await session.commit()
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """Factory for users."""

    async def _make(display_name: Optional[str] = None, role: UserRole = UserRole.RESIDENT) -> User:
        user = User(
            id=uuid.uuid4(),
            username=f"user-{uuid.uuid4().hex[:8]}",
            display_name=display_name,
            role=role.value,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest_asyncio.fixture
async def trainee(make_user) -> User:
    """A resident with no activity."""
    return await make_user(display_name="Test Resident")


@pytest_asyncio.fixture
async def make_case(db_session: AsyncSession):
    """Factory for teaching cases."""

    async def _make(
        body_part: Optional[str] = "chest",
        modality: Optional[str] = "CT",
        difficulty: Optional[int] = 2,
        title: str = "Test case",
    ) -> Case:
        case = Case(
            id=uuid.uuid4(),
            title=title,
            body_part=body_part,
            modality=modality,
            difficulty=difficulty,
        )
        db_session.add(case)
        await db_session.flush()
        return case

    return _make


@pytest_asyncio.fixture
async def make_quiz_attempts(db_session: AsyncSession):
    """Factory for a batch of quiz attempts on one case."""

    async def _make(
        user: User,
        case: Case,
        count: int,
        correct: bool = True,
        attempted_at: Optional[datetime] = None,
    ) -> None:
        attempted_at = attempted_at or utcnow()
        for _ in range(count):
            db_session.add(
                QuizAttempt(
                    user_id=user.id,
                    case_id=case.id,
                    correct=correct,
                    attempted_at=attempted_at,
                )
            )
        await db_session.flush()

    return _make


@pytest_asyncio.fixture
async def program(db_session: AsyncSession) -> Program:
    """A residency program."""
    program = Program(
        id=uuid.uuid4(),
        name="Diagnostic Radiology",
        institution_name="Test University Hospital",
        accreditation_id="4204100001",
    )
    db_session.add(program)
    await db_session.flush()
    return program


@pytest_asyncio.fixture
async def enroll(db_session: AsyncSession):
    """Factory for program memberships."""

    async def _enroll(
        program: Program,
        user: User,
        pgy_year: Optional[int] = None,
        role: ProgramRole = ProgramRole.RESIDENT,
        status: MembershipStatus = MembershipStatus.ACTIVE,
    ) -> ProgramMember:
        member = ProgramMember(
            program_id=program.id,
            user_id=user.id,
            pgy_year=pgy_year,
            role=role.value,
            status=status.value,
        )
        db_session.add(member)
        await db_session.flush()
        return member

    return _enroll


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed evaluation instant."""
    return utcnow()
