"""Program Management — owner-facing create/update/delete and public listing of programs.

Invariants:
    - Only the creator may update or delete a program
    - Status changes requested through an update go through transition_program
      (the state machine), never a raw field write
    - participants is never written here; a fresh program starts at zero
    - Initial status is derived from the clock versus the program's date window
"""

import logging
from datetime import datetime
from uuid import uuid4

from program_lifecycle.core.domain_types import ProgramStatus
from program_lifecycle.core.errors import (
    AuthorizationError,
    ErrorContext,
    NotFoundError,
    unwrap,
)
from program_lifecycle.core.program import (
    Program,
    is_creator,
    new_program,
    transition_program,
    update_program,
)
from program_lifecycle.core.repository_protocols import (
    Clock,
    ProgramFilters,
    ProgramRepository,
    ProgramWithCreator,
)

logger = logging.getLogger(__name__)


async def _get_owned_program(
    programs: ProgramRepository, program_id: str, user_id: str, action: str,
) -> Program:
    program = await programs.find_by_id(program_id)
    if program is None:
        raise NotFoundError(
            "Program", program_id,
            ErrorContext(program_id=program_id, user_id=user_id),
        )
    if not is_creator(program, user_id):
        raise AuthorizationError(
            f"Not authorized to {action} this program",
            ErrorContext(program_id=program_id, user_id=user_id),
        )
    return program


class CreateProgram:
    """Create a program owned by `created_by`."""

    def __init__(self, programs: ProgramRepository, clock: Clock):
        self.programs = programs
        self.clock = clock

    async def execute(
        self,
        created_by: str,
        title: str,
        description: str,
        type: str,
        start_date: datetime,
        end_date: datetime,
        duration: str,
        instructor: str,
        **options,
    ) -> Program:
        program = new_program(
            str(uuid4()), title, description, type, start_date, end_date,
            duration, instructor, created_by, self.clock.now(), **options,
        )
        saved = await self.programs.create(program)
        logger.info(
            f"Program created with status {saved.status.value}",
            extra={"program_id": saved.id, "user_id": created_by},
        )
        return saved


class UpdateProgram:
    """Apply owner edits; an optional `status` is routed through the state machine."""

    def __init__(self, programs: ProgramRepository, clock: Clock):
        self.programs = programs
        self.clock = clock

    async def execute(
        self,
        program_id: str,
        user_id: str,
        changes: dict,
        status: ProgramStatus | None = None,
    ) -> Program:
        program = await _get_owned_program(
            self.programs, program_id, user_id, "update",
        )
        now = self.clock.now()
        updated = unwrap(update_program(program, now, **changes))
        if status is not None:
            updated = unwrap(transition_program(updated, status, now))

        saved = await self.programs.update(updated)
        logger.info(
            "Program updated",
            extra={"program_id": program_id, "user_id": user_id},
        )
        return saved


class DeleteProgram:

    def __init__(self, programs: ProgramRepository):
        self.programs = programs

    async def execute(self, program_id: str, user_id: str) -> None:
        await _get_owned_program(self.programs, program_id, user_id, "delete")
        await self.programs.delete(program_id)
        logger.info(
            "Program deleted",
            extra={"program_id": program_id, "user_id": user_id},
        )


class GetPrograms:
    """Filtered listing plus the total matching count."""

    def __init__(self, programs: ProgramRepository):
        self.programs = programs

    async def execute(
        self, filters: ProgramFilters | None = None,
    ) -> tuple[list[ProgramWithCreator], int]:
        programs = await self.programs.find_all(filters)
        total = await self.programs.count(filters)
        return programs, total


class GetProgram:

    def __init__(self, programs: ProgramRepository):
        self.programs = programs

    async def execute(self, program_id: str) -> ProgramWithCreator:
        found = await self.programs.find_by_id_with_creator(program_id)
        if found is None:
            raise NotFoundError(
                "Program", program_id, ErrorContext(program_id=program_id),
            )
        return found
