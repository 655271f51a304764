"""API Dependencies — per-request wiring of repositories, accounting, clock and acting user.

Invariants:
    - One AsyncSession per request, shared by both repositories and the accounting
      collaborator (FastAPI caches get_db within a request)
    - The acting user comes from the X-User-Id header set by the upstream auth gateway;
      a missing or blank header is AuthenticationRequiredError (401)

Design Decisions:
    - Clock is a dependency so tests can pin time with dependency_overrides
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from program_lifecycle.core.errors import AuthenticationRequiredError
from program_lifecycle.core.repository_protocols import Clock
from program_lifecycle.infrastructure.clock import SystemClock
from program_lifecycle.infrastructure.database import get_db
from program_lifecycle.infrastructure.enrollment_repository import SqlEnrollmentRepository
from program_lifecycle.infrastructure.participant_accounting import SqlParticipantAccounting
from program_lifecycle.infrastructure.program_repository import SqlProgramRepository


def get_clock() -> Clock:
    return SystemClock()


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationRequiredError()
    return x_user_id.strip()


async def get_program_repository(
    db: AsyncSession = Depends(get_db),
) -> SqlProgramRepository:
    return SqlProgramRepository(db)


async def get_enrollment_repository(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> SqlEnrollmentRepository:
    return SqlEnrollmentRepository(
        db, accounting=SqlParticipantAccounting(db, clock),
    )
