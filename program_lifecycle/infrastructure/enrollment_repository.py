"""SQL Enrollment Repository — SQLAlchemy implementation of the EnrollmentRepository port.

Invariants:
    - Each write is one transaction: the enrollment row plus any participant accounting
    - AdmissionAccounting is told when an `enrolled` row appears (insert, or update into
      enrolled) and when one disappears (delete, or update out of enrolled)
    - A duplicate (program_id, user_id) insert surfaces as ConcurrencyError, never as a
      second row
    - Any failure rolls the whole write back, accounting included

Design Decisions:
    - The repository is the trigger: use cases stay unaware of the counter
    - Details queries INNER JOIN programs (FK guarantees presence) and OUTER JOIN users
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from program_lifecycle.core.domain_types import EnrollmentStatus
from program_lifecycle.core.enrollment import ProgramEnrollment
from program_lifecycle.core.errors import (
    ConcurrencyError,
    ErrorContext,
    LifecycleError,
    NotFoundError,
)
from program_lifecycle.core.repository_protocols import (
    AdmissionAccounting,
    EnrollmentFilters,
    EnrollmentWithDetails,
    UserSummary,
)
from program_lifecycle.infrastructure.program_repository import program_from_model
from program_lifecycle.models.enrollment import EnrollmentModel
from program_lifecycle.models.program import ProgramModel
from program_lifecycle.models.user import UserModel

logger = logging.getLogger(__name__)

_ENROLLED = EnrollmentStatus.ENROLLED.value


def enrollment_from_model(row: EnrollmentModel) -> ProgramEnrollment:
    return ProgramEnrollment(
        id=row.id,
        program_id=row.program_id,
        user_id=row.user_id,
        enrolled_at=row.enrolled_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        status=row.status,
        completed_at=row.completed_at,
        rating=row.rating,
        feedback=row.feedback,
    )


def apply_enrollment(row: EnrollmentModel, enrollment: ProgramEnrollment) -> None:
    row.program_id = enrollment.program_id
    row.user_id = enrollment.user_id
    row.status = enrollment.status.value
    row.enrolled_at = enrollment.enrolled_at
    row.completed_at = enrollment.completed_at
    row.rating = enrollment.rating
    row.feedback = enrollment.feedback
    row.created_at = enrollment.created_at
    row.updated_at = enrollment.updated_at


def _user(user: UserModel | None) -> UserSummary | None:
    if user is None:
        return None
    return UserSummary(
        id=user.id, name=user.name, email=user.email, avatar_url=user.avatar_url,
    )


def _apply_filters(query, filters: EnrollmentFilters | None):
    if filters is None:
        return query
    if filters.program_id:
        query = query.where(EnrollmentModel.program_id == filters.program_id)
    if filters.user_id:
        query = query.where(EnrollmentModel.user_id == filters.user_id)
    if filters.status is not None:
        query = query.where(
            EnrollmentModel.status == EnrollmentStatus(filters.status).value,
        )
    return query


class SqlEnrollmentRepository:
    """EnrollmentRepository over an AsyncSession, with optional participant accounting."""

    def __init__(
        self, db: AsyncSession, accounting: AdmissionAccounting | None = None,
    ):
        self.db = db
        self.accounting = accounting

    async def _get_model(self, enrollment_id: str) -> EnrollmentModel | None:
        result = await self.db.execute(
            select(EnrollmentModel).where(EnrollmentModel.id == enrollment_id),
        )
        return result.scalar_one_or_none()

    def _with_details(self):
        return (
            select(EnrollmentModel, ProgramModel, UserModel)
            .join(ProgramModel, ProgramModel.id == EnrollmentModel.program_id)
            .outerjoin(UserModel, UserModel.id == EnrollmentModel.user_id)
            .execution_options(populate_existing=True)
        )

    async def _account(self, program_id: str, was_active: bool, is_active: bool) -> None:
        if self.accounting is None or was_active == is_active:
            return
        if is_active:
            await self.accounting.enrollment_added(program_id)
        else:
            await self.accounting.enrollment_removed(program_id)

    async def _commit_write(
        self, enrollment_id: str, program_id: str, was_active: bool, is_active: bool,
    ) -> None:
        """Flush, run accounting, commit — or roll everything back."""
        try:
            await self.db.flush()
            await self._account(program_id, was_active, is_active)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                f"Enrollment write lost a uniqueness race: {e.orig}",
                extra={"enrollment_id": enrollment_id, "program_id": program_id},
            )
            raise ConcurrencyError(
                "An enrollment for this user and program already exists",
                ErrorContext(enrollment_id=enrollment_id, program_id=program_id),
            ) from e
        except LifecycleError:
            await self.db.rollback()
            raise

    # ─── Reads ───────────────────────────────────────────────────

    async def find_by_id(self, enrollment_id: str) -> ProgramEnrollment | None:
        row = await self._get_model(enrollment_id)
        return enrollment_from_model(row) if row else None

    async def find_by_id_with_details(
        self, enrollment_id: str,
    ) -> EnrollmentWithDetails | None:
        result = await self.db.execute(
            self._with_details().where(EnrollmentModel.id == enrollment_id),
        )
        found = result.first()
        if found is None:
            return None
        row, program, user = found
        return EnrollmentWithDetails(
            enrollment_from_model(row), program_from_model(program), _user(user),
        )

    async def find_all(
        self, filters: EnrollmentFilters | None = None,
    ) -> list[EnrollmentWithDetails]:
        query = _apply_filters(self._with_details(), filters).order_by(
            EnrollmentModel.enrolled_at.desc(),
        )
        result = await self.db.execute(query)
        return [
            EnrollmentWithDetails(
                enrollment_from_model(row), program_from_model(program), _user(user),
            )
            for row, program, user in result.all()
        ]

    async def find_by_program(self, program_id: str) -> list[EnrollmentWithDetails]:
        return await self.find_all(EnrollmentFilters(program_id=program_id))

    async def find_by_user(self, user_id: str) -> list[EnrollmentWithDetails]:
        return await self.find_all(EnrollmentFilters(user_id=user_id))

    async def find_by_program_and_user(
        self, program_id: str, user_id: str,
    ) -> ProgramEnrollment | None:
        result = await self.db.execute(
            select(EnrollmentModel)
            .where(EnrollmentModel.program_id == program_id)
            .where(EnrollmentModel.user_id == user_id),
        )
        row = result.scalar_one_or_none()
        return enrollment_from_model(row) if row else None

    async def exists(self, enrollment_id: str) -> bool:
        result = await self.db.execute(
            select(EnrollmentModel.id).where(EnrollmentModel.id == enrollment_id),
        )
        return result.scalar_one_or_none() is not None

    async def is_user_enrolled(self, program_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            select(EnrollmentModel.id)
            .where(EnrollmentModel.program_id == program_id)
            .where(EnrollmentModel.user_id == user_id)
            .where(EnrollmentModel.status == _ENROLLED),
        )
        return result.scalar_one_or_none() is not None

    async def count(self, filters: EnrollmentFilters | None = None) -> int:
        query = _apply_filters(select(func.count(EnrollmentModel.id)), filters)
        result = await self.db.execute(query)
        return result.scalar_one()

    # ─── Writes ──────────────────────────────────────────────────

    async def create(self, enrollment: ProgramEnrollment) -> ProgramEnrollment:
        row = EnrollmentModel(id=enrollment.id)
        apply_enrollment(row, enrollment)
        self.db.add(row)
        await self._commit_write(
            enrollment.id, enrollment.program_id,
            was_active=False, is_active=row.status == _ENROLLED,
        )
        return enrollment_from_model(row)

    async def update(self, enrollment: ProgramEnrollment) -> ProgramEnrollment:
        row = await self._get_model(enrollment.id)
        if row is None:
            raise NotFoundError(
                "Enrollment", enrollment.id,
                ErrorContext(enrollment_id=enrollment.id),
            )
        was_active = row.status == _ENROLLED
        apply_enrollment(row, enrollment)
        await self._commit_write(
            enrollment.id, enrollment.program_id,
            was_active=was_active, is_active=row.status == _ENROLLED,
        )
        return enrollment_from_model(row)

    async def delete(self, enrollment_id: str) -> None:
        row = await self._get_model(enrollment_id)
        if row is None:
            return
        program_id = row.program_id
        was_active = row.status == _ENROLLED
        await self.db.delete(row)
        await self._commit_write(
            enrollment_id, program_id, was_active=was_active, is_active=False,
        )
