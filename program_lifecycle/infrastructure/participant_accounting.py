"""Participant Accounting — keeps programs.participants in step with active enrollments.

Invariants:
    - Runs inside the caller's transaction (flush only, never commit)
    - The program row is locked (SELECT ... FOR UPDATE) before it is read, so concurrent
      enrollments into the same program serialize on the counter
    - Counter moves go through core increment/decrement_participants — the same
      validation as every other program mutation
    - Incrementing a full program raises CapacityExceededError; the caller's rollback
      discards the enrollment write that triggered it

Design Decisions:
    - Trigger-like collaborator called by SqlEnrollmentRepository, not by use cases:
      admission is evaluated in-process, accounting is a persistence concern
    - populate_existing: a program already in the identity map (read earlier in the same
      request) must be refreshed under the lock, not served stale
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from program_lifecycle.core.errors import (
    CapacityExceededError,
    ErrorContext,
    NotFoundError,
    unwrap,
)
from program_lifecycle.core.program import (
    Program,
    decrement_participants,
    increment_participants,
    is_full,
)
from program_lifecycle.core.repository_protocols import Clock
from program_lifecycle.infrastructure.program_repository import program_from_model
from program_lifecycle.models.program import ProgramModel

logger = logging.getLogger(__name__)


class SqlParticipantAccounting:
    """AdmissionAccounting over the programs table."""

    def __init__(self, db: AsyncSession, clock: Clock):
        self.db = db
        self.clock = clock

    async def _lock(self, program_id: str) -> ProgramModel:
        result = await self.db.execute(
            select(ProgramModel)
            .where(ProgramModel.id == program_id)
            .with_for_update()
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(
                "Program", program_id, ErrorContext(program_id=program_id),
            )
        return row

    async def _store(self, row: ProgramModel, program: Program) -> None:
        row.participants = program.participants
        row.updated_at = program.updated_at
        await self.db.flush()

    async def enrollment_added(self, program_id: str) -> None:
        row = await self._lock(program_id)
        program = program_from_model(row)
        if is_full(program):
            logger.warning(
                "Capacity reached while recording enrollment",
                extra={"program_id": program_id, "error_code": "PROGRAM_FULL"},
            )
            raise CapacityExceededError(
                "Program is full", ErrorContext(program_id=program_id),
            )
        await self._store(row, unwrap(increment_participants(program, self.clock.now())))

    async def enrollment_removed(self, program_id: str) -> None:
        row = await self._lock(program_id)
        program = program_from_model(row)
        await self._store(row, unwrap(decrement_participants(program, self.clock.now())))
