"""Admission Control — pure decisions behind enrolling a user in a program.

Invariants:
    - admission_refusal is PURE: returns the single reason a program refuses enrollment, or None
    - Refusal reasons are checked in priority order: full > already started > generic
    - resolve_existing_enrollment is PURE: returns the action descriptor; the shell performs it
    - Neither function touches the participant counter (that is AdmissionAccounting's job)

Design Decisions:
    - Split from the use case so every branch of the admission table is testable without IO
    - Returns error instances instead of raising: same convention as core transitions
"""

from datetime import datetime
from enum import Enum

from program_lifecycle.core.domain_types import EnrollmentStatus
from program_lifecycle.core.enrollment import ProgramEnrollment
from program_lifecycle.core.errors import (
    CapacityExceededError,
    ErrorContext,
    InvalidStateError,
    LifecycleError,
)
from program_lifecycle.core.program import (
    Program,
    has_started,
    is_accepting_enrollments,
    is_full,
)


class EnrollmentAction(str, Enum):
    """What EnrollInProgram must do once the program has admitted the user."""
    CREATE = "create"
    KEEP = "keep"
    REENROLL = "reenroll"


def admission_refusal(program: Program, now: datetime) -> LifecycleError | None:
    """Why `program` refuses new enrollments at `now`, or None if it accepts them."""
    if is_accepting_enrollments(program, now):
        return None

    context = ErrorContext(program_id=program.id)
    if is_full(program):
        return CapacityExceededError("Program is full", context)
    if has_started(program, now):
        return InvalidStateError("Program has already started", context)
    return InvalidStateError("Program is not accepting enrollments", context)


def resolve_existing_enrollment(
    existing: ProgramEnrollment | None,
) -> EnrollmentAction | LifecycleError:
    """Map the user's prior enrollment (if any) to the action that keeps one active row."""
    if existing is None:
        return EnrollmentAction.CREATE
    if existing.status == EnrollmentStatus.ENROLLED:
        return EnrollmentAction.KEEP
    if existing.status == EnrollmentStatus.COMPLETED:
        return InvalidStateError(
            "Already completed this program",
            ErrorContext(
                program_id=existing.program_id,
                enrollment_id=existing.id,
                user_id=existing.user_id,
            ),
        )
    return EnrollmentAction.REENROLL
