"""SQL Repositories — SqlProgramRepository and SqlEnrollmentRepository over in-memory SQLite.

Tests cover:
    - Program round-trip (skills order, aware datetimes) and updates re-syncing skills
    - Listing filters: type, status, featured, skills containment, search, creator
    - Creator and user details via outer joins (missing profile → None)
    - Enrollment writes drive participant accounting (create, drop, re-enroll, delete)
    - Capacity enforced at the store; duplicate (program, user) → ConcurrencyError
    - Deleting a program removes its enrollments
    - Program edits from a stale read keep the live participant count (file-backed SQLite,
      one session per request)
"""

from dataclasses import replace
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from program_lifecycle.core.domain_types import EnrollmentStatus, ProgramStatus
from program_lifecycle.core.enrollment import drop_enrollment, new_enrollment, reenroll
from program_lifecycle.core.errors import (
    CapacityExceededError,
    ConcurrencyError,
    NotFoundError,
    ValidationError,
)
from program_lifecycle.core.program import new_program, update_program
from program_lifecycle.core.repository_protocols import EnrollmentFilters, ProgramFilters
from program_lifecycle.db.base import Base
from program_lifecycle.infrastructure.enrollment_repository import SqlEnrollmentRepository
from program_lifecycle.infrastructure.participant_accounting import SqlParticipantAccounting
from program_lifecycle.infrastructure.program_repository import SqlProgramRepository
from program_lifecycle.models import ProgramModel
from tests.core.factories import NOW


@pytest.fixture
def programs(test_db):
    return SqlProgramRepository(test_db)


@pytest.fixture
def enrollments(test_db, clock):
    return SqlEnrollmentRepository(
        test_db, accounting=SqlParticipantAccounting(test_db, clock),
    )


# ─── Programs ────────────────────────────────────────────────────

async def test_program_round_trip(programs):
    program = new_program(
        "prog-x", "Data Course", "Statistics and SQL for product managers.",
        "course", NOW + timedelta(days=1), NOW + timedelta(days=30), "4 weeks",
        "Kim Park", "owner-1", NOW, skills=["sql", "stats", "sql"], max_participants=12,
    )
    await programs.create(program)

    loaded = await programs.find_by_id("prog-x")
    assert loaded.skills == ("sql", "stats")
    assert loaded.start_date == program.start_date
    assert loaded.start_date.tzinfo is not None
    assert loaded.status == ProgramStatus.UPCOMING
    assert loaded.max_participants == 12


async def test_update_resyncs_skills(programs, seed_program):
    await seed_program(skills=["python", "sql"])
    program = await programs.find_by_id("prog-1")
    changed = update_program(program, NOW, skills=["sql", "go"])
    await programs.update(changed)
    assert (await programs.find_by_id("prog-1")).skills == ("sql", "go")


async def test_update_missing_program_raises(programs, seed_program):
    await seed_program()
    program = await programs.find_by_id("prog-1")
    await programs.delete("prog-1")
    with pytest.raises(NotFoundError):
        await programs.update(program)


async def test_delete_missing_program_is_noop(programs):
    await programs.delete("prog-404")


async def test_listing_filters(programs, seed_program):
    await seed_program(type="workshop", skills=["python", "sql"], featured=True)
    await seed_program(
        type="bootcamp", skills=["python"], status="active",
        start_date=NOW - timedelta(days=1),
    )
    await seed_program(
        type="bootcamp", title="Fundraising Sprint", created_by="owner-2",
        start_date=NOW + timedelta(days=40), end_date=NOW + timedelta(days=60),
    )

    def ids(found):
        return [p.program.id for p in found]

    assert ids(await programs.find_all()) == ["prog-3", "prog-1", "prog-2"]
    assert ids(await programs.find_all(ProgramFilters(type="bootcamp"))) == ["prog-3", "prog-2"]
    assert ids(await programs.find_all(ProgramFilters(status=ProgramStatus.ACTIVE))) == ["prog-2"]
    assert ids(await programs.find_all(ProgramFilters(featured=True))) == ["prog-1"]
    assert ids(await programs.find_all(ProgramFilters(skills=("python", "sql")))) == ["prog-1"]
    assert ids(await programs.find_all(ProgramFilters(skills=("python",)))) == ["prog-1", "prog-2"]
    assert ids(await programs.find_all(ProgramFilters(search="SPRINT"))) == ["prog-3"]
    assert ids(await programs.find_by_creator("owner-2")) == ["prog-3"]
    assert await programs.count(ProgramFilters(type="bootcamp")) == 2


async def test_creator_details_outer_joined(programs, seed_program, seed_user):
    await seed_program()
    await seed_program(created_by="nobody")
    await seed_user("owner-1", professional_title="Partner")

    with_creator = await programs.find_by_id_with_creator("prog-1")
    assert with_creator.creator.name == "Dana Reyes"
    assert with_creator.creator.professional_title == "Partner"
    assert (await programs.find_by_id_with_creator("prog-2")).creator is None
    assert await programs.find_by_id_with_creator("prog-404") is None


# ─── Enrollments & accounting ────────────────────────────────────

async def test_create_enrollment_increments_participants(programs, enrollments, seed_program):
    await seed_program(max_participants=2)
    await enrollments.create(new_enrollment("e1", "prog-1", "user-1", NOW))

    program = await programs.find_by_id("prog-1")
    assert program.participants == 1
    assert program.updated_at == NOW
    assert await enrollments.is_user_enrolled("prog-1", "user-1")


async def test_capacity_enforced_at_store(programs, enrollments, seed_program):
    await seed_program(max_participants=1)
    await enrollments.create(new_enrollment("e1", "prog-1", "user-1", NOW))

    with pytest.raises(CapacityExceededError):
        await enrollments.create(new_enrollment("e2", "prog-1", "user-2", NOW))

    assert not await enrollments.exists("e2")
    assert (await programs.find_by_id("prog-1")).participants == 1


async def test_duplicate_enrollment_is_concurrency_error(programs, enrollments, seed_program):
    await seed_program()
    await enrollments.create(new_enrollment("e1", "prog-1", "user-1", NOW))

    with pytest.raises(ConcurrencyError):
        await enrollments.create(new_enrollment("e2", "prog-1", "user-1", NOW))

    assert await enrollments.count(EnrollmentFilters(program_id="prog-1")) == 1
    assert (await programs.find_by_id("prog-1")).participants == 1


async def test_drop_and_reenroll_move_counter(programs, enrollments, seed_program):
    await seed_program()
    created = await enrollments.create(new_enrollment("e1", "prog-1", "user-1", NOW))

    dropped = await enrollments.update(drop_enrollment(created, NOW))
    assert dropped.status == EnrollmentStatus.DROPPED
    assert (await programs.find_by_id("prog-1")).participants == 0

    await enrollments.update(reenroll(dropped, NOW))
    assert (await programs.find_by_id("prog-1")).participants == 1


async def test_delete_active_enrollment_decrements(programs, enrollments, seed_program):
    await seed_program()
    await enrollments.create(new_enrollment("e1", "prog-1", "user-1", NOW))
    await enrollments.delete("e1")
    assert not await enrollments.exists("e1")
    assert (await programs.find_by_id("prog-1")).participants == 0


async def test_enrollment_details(enrollments, seed_program, seed_user):
    await seed_program()
    await seed_user("user-1", name="Lee Chen", email="lee@example.com")
    await enrollments.create(new_enrollment("e1", "prog-1", "user-1", NOW))
    await enrollments.create(
        new_enrollment("e2", "prog-1", "user-2", NOW + timedelta(minutes=1)),
    )

    details = await enrollments.find_by_id_with_details("e1")
    assert details.program.id == "prog-1"
    assert details.user.email == "lee@example.com"

    by_program = await enrollments.find_by_program("prog-1")
    assert [d.enrollment.id for d in by_program] == ["e2", "e1"]
    assert by_program[0].user is None
    assert [d.enrollment.id for d in await enrollments.find_by_user("user-2")] == ["e2"]


async def test_deleting_program_removes_enrollments(programs, enrollments, seed_program):
    await seed_program()
    await enrollments.create(new_enrollment("e1", "prog-1", "user-1", NOW))
    await programs.delete("prog-1")
    assert not await enrollments.exists("e1")


# ─── Program edits vs. concurrent enrollments ────────────────────

@pytest.fixture
async def file_session_factory(tmp_path):
    """Separate connections on one file-backed database, like concurrent requests."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'programs.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def _insert_program(session_factory, **overrides) -> None:
    fields = dict(
        id="prog-1", title="Founders Bootcamp",
        description="Six weeks of hands-on product and fundraising work.",
        type="bootcamp", status="upcoming",
        start_date=NOW + timedelta(days=10), end_date=NOW + timedelta(days=52),
        duration="6 weeks", instructor="Dana Reyes", participants=0, featured=False,
        created_by="owner-1",
        created_at=NOW - timedelta(days=1), updated_at=NOW - timedelta(days=1),
    )
    fields.update(overrides)
    async with session_factory() as session:
        session.add(ProgramModel(**fields))
        await session.commit()


async def test_stale_program_update_keeps_participant_count(file_session_factory, clock):
    await _insert_program(file_session_factory, max_participants=1)

    async with file_session_factory() as editor_db, file_session_factory() as other_db:
        editor = SqlProgramRepository(editor_db)
        stale = await editor.find_by_id("prog-1")
        assert stale.participants == 0

        first = SqlEnrollmentRepository(
            other_db, accounting=SqlParticipantAccounting(other_db, clock),
        )
        await first.create(new_enrollment("e1", "prog-1", "user-1", NOW))

        saved = await editor.update(update_program(stale, NOW, title="Founders Bootcamp II"))
        assert saved.title == "Founders Bootcamp II"
        assert saved.participants == 1

    async with file_session_factory() as late_db:
        late = SqlEnrollmentRepository(
            late_db, accounting=SqlParticipantAccounting(late_db, clock),
        )
        with pytest.raises(CapacityExceededError):
            await late.create(new_enrollment("e2", "prog-1", "user-2", NOW))

        program = await SqlProgramRepository(late_db).find_by_id("prog-1")
        enrolled = await late.count(
            EnrollmentFilters(program_id="prog-1", status=EnrollmentStatus.ENROLLED),
        )
        assert program.title == "Founders Bootcamp II"
        assert program.participants == enrolled == 1


async def test_shrinking_capacity_below_live_count_rejected(file_session_factory):
    await _insert_program(file_session_factory, max_participants=3, participants=2)

    async with file_session_factory() as session:
        programs = SqlProgramRepository(session)
        stale = replace(await programs.find_by_id("prog-1"), participants=0)

        with pytest.raises(ValidationError, match="cannot exceed max participants"):
            await programs.update(update_program(stale, NOW, max_participants=1))

        program = await programs.find_by_id("prog-1")
        assert program.max_participants == 3
        assert program.participants == 2
