"""SQL Program Repository — SQLAlchemy implementation of the ProgramRepository port.

Invariants:
    - Rows are rehydrated through the Program constructor (invalid rows raise ValidationError)
    - Skills keep their submitted order and are de-duplicated
    - participants is written once, on insert; afterwards only SqlParticipantAccounting
      moves it. update() locks the row and keeps the stored count, so a Program read
      before a concurrent enrollment cannot roll the counter back
    - Listing order: start_date descending (latest first)

Design Decisions:
    - Creator details via OUTER JOIN on users: a missing profile yields creator=None
      rather than dropping the program from listings
    - Skills containment as GROUP BY/HAVING over program_skills (portable, indexable)
"""

import logging
from dataclasses import replace

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from program_lifecycle.core.domain_types import ProgramStatus, ProgramType
from program_lifecycle.core.errors import ErrorContext, NotFoundError, ValidationError
from program_lifecycle.core.program import Program
from program_lifecycle.core.repository_protocols import (
    CreatorSummary,
    ProgramFilters,
    ProgramWithCreator,
)
from program_lifecycle.models.program import ProgramModel, ProgramSkillModel
from program_lifecycle.models.user import UserModel

logger = logging.getLogger(__name__)


# ─── Mapping ─────────────────────────────────────────────────────

def program_from_model(row: ProgramModel) -> Program:
    return Program(
        id=row.id,
        title=row.title,
        description=row.description,
        type=row.type,
        start_date=row.start_date,
        end_date=row.end_date,
        duration=row.duration,
        instructor=row.instructor,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
        status=row.status,
        participants=row.participants,
        max_participants=row.max_participants,
        location=row.location,
        featured=row.featured,
        skills=tuple(s.skill for s in row.skills),
        price=row.price,
        image_url=row.image_url,
    )


def apply_program(row: ProgramModel, program: Program) -> None:
    """Copy the editable fields of `program` onto `row`. participants is left alone."""
    row.title = program.title
    row.description = program.description
    row.type = program.type.value
    row.status = program.status.value
    row.start_date = program.start_date
    row.end_date = program.end_date
    row.duration = program.duration
    row.location = program.location
    row.max_participants = program.max_participants
    row.instructor = program.instructor
    row.featured = program.featured
    row.price = program.price
    row.image_url = program.image_url
    row.created_by = program.created_by
    row.created_at = program.created_at
    row.updated_at = program.updated_at
    _sync_skills(row, program.skills)


def _sync_skills(row: ProgramModel, skills: tuple[str, ...]) -> None:
    # Reuse existing child rows: re-inserting the same (program_id, skill) key
    # while the old row is pending delete would clash in the identity map
    current = {s.skill: s for s in row.skills}
    wanted = list(dict.fromkeys(skills))
    row.skills = [current.get(skill) or ProgramSkillModel(skill=skill) for skill in wanted]
    for position, skill_row in enumerate(row.skills):
        skill_row.position = position


def _creator(user: UserModel | None) -> CreatorSummary | None:
    if user is None:
        return None
    return CreatorSummary(
        id=user.id,
        name=user.name,
        avatar_url=user.avatar_url,
        professional_title=user.professional_title,
    )


def _apply_filters(query, filters: ProgramFilters | None):
    if filters is None:
        return query
    if filters.type is not None:
        query = query.where(ProgramModel.type == ProgramType(filters.type).value)
    if filters.status is not None:
        query = query.where(ProgramModel.status == ProgramStatus(filters.status).value)
    if filters.featured is not None:
        query = query.where(ProgramModel.featured.is_(filters.featured))
    if filters.created_by:
        query = query.where(ProgramModel.created_by == filters.created_by)
    if filters.skills:
        wanted = set(filters.skills)
        carrying_all = (
            select(ProgramSkillModel.program_id)
            .where(ProgramSkillModel.skill.in_(wanted))
            .group_by(ProgramSkillModel.program_id)
            .having(func.count(ProgramSkillModel.skill) == len(wanted))
        )
        query = query.where(ProgramModel.id.in_(carrying_all))
    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.where(or_(
            ProgramModel.title.ilike(pattern),
            ProgramModel.description.ilike(pattern),
        ))
    return query


# ─── Repository ──────────────────────────────────────────────────

class SqlProgramRepository:
    """ProgramRepository over an AsyncSession. Each write commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_model(self, program_id: str) -> ProgramModel | None:
        result = await self.db.execute(
            select(ProgramModel)
            .where(ProgramModel.id == program_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    def _with_creator(self):
        # A rolled-back enrollment write expires rows shared through this session;
        # reload them (skills included) instead of lazy-loading under asyncio
        return (
            select(ProgramModel, UserModel)
            .outerjoin(UserModel, UserModel.id == ProgramModel.created_by)
            .execution_options(populate_existing=True)
        )

    async def find_by_id(self, program_id: str) -> Program | None:
        row = await self._get_model(program_id)
        return program_from_model(row) if row else None

    async def find_by_id_with_creator(
        self, program_id: str,
    ) -> ProgramWithCreator | None:
        result = await self.db.execute(
            self._with_creator().where(ProgramModel.id == program_id),
        )
        found = result.first()
        if found is None:
            return None
        row, user = found
        return ProgramWithCreator(program_from_model(row), _creator(user))

    async def find_all(
        self, filters: ProgramFilters | None = None,
    ) -> list[ProgramWithCreator]:
        query = _apply_filters(self._with_creator(), filters).order_by(
            ProgramModel.start_date.desc(),
        )
        result = await self.db.execute(query)
        return [
            ProgramWithCreator(program_from_model(row), _creator(user))
            for row, user in result.all()
        ]

    async def find_by_creator(self, user_id: str) -> list[ProgramWithCreator]:
        return await self.find_all(ProgramFilters(created_by=user_id))

    async def create(self, program: Program) -> Program:
        row = ProgramModel(id=program.id, participants=program.participants)
        apply_program(row, program)
        self.db.add(row)
        await self.db.commit()
        logger.debug("Program row inserted", extra={"program_id": program.id})
        return program_from_model(row)

    async def update(self, program: Program) -> Program:
        """Persist edits to `program`, keeping the stored participant count.

        The row is locked like an accounting write, and the edited values are
        re-validated against the live count (a shrunk max_participants may no
        longer fit).
        """
        result = await self.db.execute(
            select(ProgramModel)
            .where(ProgramModel.id == program.id)
            .with_for_update()
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(
                "Program", program.id, ErrorContext(program_id=program.id),
            )
        try:
            live = replace(
                program,
                participants=row.participants,
                updated_at=max(program.updated_at, row.updated_at),
            )
        except ValidationError:
            await self.db.rollback()
            logger.warning(
                "Program update conflicts with current participants",
                extra={"program_id": program.id, "error_code": "VALIDATION_ERROR"},
            )
            raise
        apply_program(row, live)
        await self.db.commit()
        return program_from_model(row)

    async def delete(self, program_id: str) -> None:
        row = await self._get_model(program_id)
        if row is None:
            return
        await self.db.delete(row)
        await self.db.commit()

    async def exists(self, program_id: str) -> bool:
        result = await self.db.execute(
            select(ProgramModel.id).where(ProgramModel.id == program_id),
        )
        return result.scalar_one_or_none() is not None

    async def count(self, filters: ProgramFilters | None = None) -> int:
        query = _apply_filters(select(func.count(ProgramModel.id)), filters)
        result = await self.db.execute(query)
        return result.scalar_one()
