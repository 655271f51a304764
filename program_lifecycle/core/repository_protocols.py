"""Boundary Protocols — contracts between the lifecycle core and its persistence shell.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - Repositories are pure data access: no business rules, no state transitions
    - The enrollment store must reject a second row for the same (program_id, user_id);
      the use cases rely on this to close the check-then-act window
    - participants on a program is written only through AdmissionAccounting

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - Async in Protocol: implementations do IO; core functions that consume the
      results stay synchronous and pure
    - Clock is a port too: "now" is injected, never read from ambient system time
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from program_lifecycle.core.domain_types import (
    EnrollmentStatus,
    ProgramStatus,
    ProgramType,
)
from program_lifecycle.core.enrollment import ProgramEnrollment
from program_lifecycle.core.program import Program


# ─── Query carriers ──────────────────────────────────────────────

@dataclass(frozen=True)
class ProgramFilters:
    """Program listing filters. All set filters must match (AND)."""
    type: ProgramType | None = None
    status: ProgramStatus | None = None
    skills: tuple[str, ...] = ()      # program must carry every listed skill
    featured: bool | None = None
    search: str | None = None         # case-insensitive substring of title or description
    created_by: str | None = None


@dataclass(frozen=True)
class EnrollmentFilters:
    program_id: str | None = None
    user_id: str | None = None
    status: EnrollmentStatus | None = None


@dataclass(frozen=True)
class CreatorSummary:
    id: str
    name: str
    avatar_url: str | None = None
    professional_title: str | None = None


@dataclass(frozen=True)
class ProgramWithCreator:
    program: Program
    creator: CreatorSummary | None


@dataclass(frozen=True)
class UserSummary:
    id: str
    name: str
    email: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class EnrollmentWithDetails:
    enrollment: ProgramEnrollment
    program: Program
    user: UserSummary | None


# ─── Ports ───────────────────────────────────────────────────────

class Clock(Protocol):
    """Time source — timezone-aware UTC datetimes."""
    def now(self) -> datetime: ...


class ProgramRepository(Protocol):
    """Contract for program persistence — implemented by infrastructure."""
    async def find_by_id(self, program_id: str) -> Program | None: ...
    async def find_by_id_with_creator(
        self, program_id: str,
    ) -> ProgramWithCreator | None: ...
    async def find_all(
        self, filters: ProgramFilters | None = None,
    ) -> list[ProgramWithCreator]: ...
    async def find_by_creator(self, user_id: str) -> list[ProgramWithCreator]: ...
    async def create(self, program: Program) -> Program: ...
    async def update(self, program: Program) -> Program: ...
    async def delete(self, program_id: str) -> None: ...
    async def exists(self, program_id: str) -> bool: ...
    async def count(self, filters: ProgramFilters | None = None) -> int: ...


class EnrollmentRepository(Protocol):
    """Contract for enrollment persistence — implemented by infrastructure."""
    async def find_by_id(self, enrollment_id: str) -> ProgramEnrollment | None: ...
    async def find_by_id_with_details(
        self, enrollment_id: str,
    ) -> EnrollmentWithDetails | None: ...
    async def find_all(
        self, filters: EnrollmentFilters | None = None,
    ) -> list[EnrollmentWithDetails]: ...
    async def find_by_program(self, program_id: str) -> list[EnrollmentWithDetails]: ...
    async def find_by_user(self, user_id: str) -> list[EnrollmentWithDetails]: ...
    async def find_by_program_and_user(
        self, program_id: str, user_id: str,
    ) -> ProgramEnrollment | None: ...
    async def create(self, enrollment: ProgramEnrollment) -> ProgramEnrollment: ...
    async def update(self, enrollment: ProgramEnrollment) -> ProgramEnrollment: ...
    async def delete(self, enrollment_id: str) -> None: ...
    async def exists(self, enrollment_id: str) -> bool: ...
    async def is_user_enrolled(self, program_id: str, user_id: str) -> bool: ...
    async def count(self, filters: EnrollmentFilters | None = None) -> int: ...


class AdmissionAccounting(Protocol):
    """Participant-count maintenance, driven by enrollment writes.

    Called by the persistence layer (trigger-like) when an active enrollment
    appears or disappears — never by the enrollment use cases themselves.
    """
    async def enrollment_added(self, program_id: str) -> None: ...
    async def enrollment_removed(self, program_id: str) -> None: ...
