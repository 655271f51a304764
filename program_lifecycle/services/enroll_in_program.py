"""Enroll In Program — admission control and idempotent enrollment for one (program, user) pair.

Invariants:
    - Returned enrollment always has status `enrolled`
    - At most ONE write to the enrollment store per call (create OR update OR nothing)
    - Re-invoking for an already-enrolled user returns the same enrollment, no write
    - Never touches program.participants (AdmissionAccounting does, at the persistence layer)
    - Catches nothing: every failure propagates unchanged

Design Decisions:
    - Impureim sandwich: read program + existing enrollment, decide in core/admission.py,
      write once
    - Check-then-act gap is closed by the store (unique (program_id, user_id), locked
      participant update), not here — see DESIGN.md
"""

import logging
from uuid import uuid4

from program_lifecycle.core.admission import (
    EnrollmentAction,
    admission_refusal,
    resolve_existing_enrollment,
)
from program_lifecycle.core.enrollment import (
    ProgramEnrollment,
    new_enrollment,
    reenroll,
)
from program_lifecycle.core.errors import ErrorContext, NotFoundError, unwrap
from program_lifecycle.core.repository_protocols import (
    Clock,
    EnrollmentRepository,
    ProgramRepository,
)

logger = logging.getLogger(__name__)


class EnrollInProgram:
    """Enroll a user, re-enroll a dropped/rejected one, or return the active enrollment."""

    def __init__(
        self,
        programs: ProgramRepository,
        enrollments: EnrollmentRepository,
        clock: Clock,
    ):
        self.programs = programs
        self.enrollments = enrollments
        self.clock = clock

    async def execute(self, program_id: str, user_id: str) -> ProgramEnrollment:
        program = await self.programs.find_by_id(program_id)
        if program is None:
            raise NotFoundError(
                "Program", program_id,
                ErrorContext(program_id=program_id, user_id=user_id),
            )

        now = self.clock.now()
        refusal = admission_refusal(program, now)
        if refusal is not None:
            refusal.context.user_id = user_id
            logger.warning(
                f"Enrollment refused: {refusal.message}",
                extra={
                    "program_id": program_id, "user_id": user_id,
                    "error_code": refusal.code,
                },
            )
            raise refusal

        existing = await self.enrollments.find_by_program_and_user(
            program_id, user_id,
        )
        action = unwrap(resolve_existing_enrollment(existing))

        if action == EnrollmentAction.KEEP:
            return existing

        if action == EnrollmentAction.REENROLL:
            restored = unwrap(reenroll(existing, now))
            saved = await self.enrollments.update(restored)
            logger.info(
                "User re-enrolled in program",
                extra={
                    "program_id": program_id, "user_id": user_id,
                    "enrollment_id": saved.id,
                },
            )
            return saved

        enrollment = new_enrollment(str(uuid4()), program_id, user_id, now)
        saved = await self.enrollments.create(enrollment)
        logger.info(
            "User enrolled in program",
            extra={
                "program_id": program_id, "user_id": user_id,
                "enrollment_id": saved.id,
            },
        )
        return saved
