"""Cancel Enrollment — ownership-checked hard delete of an enrollment.

Invariants:
    - Only the enrolled user may cancel their enrollment
    - Deletes regardless of status (completed enrollments included) — see DESIGN.md
    - Participant count follows through AdmissionAccounting in the store, not here
"""

import logging

from program_lifecycle.core.errors import (
    AuthorizationError,
    ErrorContext,
    NotFoundError,
)
from program_lifecycle.core.repository_protocols import EnrollmentRepository

logger = logging.getLogger(__name__)


class CancelEnrollment:

    def __init__(self, enrollments: EnrollmentRepository):
        self.enrollments = enrollments

    async def execute(self, enrollment_id: str, user_id: str) -> None:
        enrollment = await self.enrollments.find_by_id(enrollment_id)
        if enrollment is None:
            raise NotFoundError(
                "Enrollment", enrollment_id,
                ErrorContext(enrollment_id=enrollment_id, user_id=user_id),
            )

        if enrollment.user_id != user_id:
            raise AuthorizationError(
                "This enrollment does not belong to you",
                ErrorContext(
                    enrollment_id=enrollment_id,
                    program_id=enrollment.program_id,
                    user_id=user_id,
                ),
            )

        await self.enrollments.delete(enrollment_id)
        logger.info(
            "Enrollment cancelled",
            extra={
                "enrollment_id": enrollment_id,
                "program_id": enrollment.program_id,
                "user_id": user_id,
            },
        )
