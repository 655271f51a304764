"""Enrollment Queries & Feedback — a user's enrollments and post-completion feedback.

Invariants:
    - Feedback is only accepted on the caller's own, completed enrollment
    - Listing is read-only
"""

import logging

from program_lifecycle.core.enrollment import ProgramEnrollment, update_feedback
from program_lifecycle.core.errors import (
    AuthorizationError,
    ErrorContext,
    NotFoundError,
    unwrap,
)
from program_lifecycle.core.repository_protocols import (
    Clock,
    EnrollmentRepository,
    EnrollmentWithDetails,
)

logger = logging.getLogger(__name__)


class GetUserEnrollments:

    def __init__(self, enrollments: EnrollmentRepository):
        self.enrollments = enrollments

    async def execute(self, user_id: str) -> list[EnrollmentWithDetails]:
        return await self.enrollments.find_by_user(user_id)


class UpdateEnrollmentFeedback:
    """Rate and/or comment on a completed enrollment."""

    def __init__(self, enrollments: EnrollmentRepository, clock: Clock):
        self.enrollments = enrollments
        self.clock = clock

    async def execute(
        self,
        enrollment_id: str,
        user_id: str,
        rating: int | None = None,
        feedback: str | None = None,
    ) -> ProgramEnrollment:
        enrollment = await self.enrollments.find_by_id(enrollment_id)
        if enrollment is None:
            raise NotFoundError(
                "Enrollment", enrollment_id,
                ErrorContext(enrollment_id=enrollment_id, user_id=user_id),
            )
        if enrollment.user_id != user_id:
            raise AuthorizationError(
                "This enrollment does not belong to you",
                ErrorContext(enrollment_id=enrollment_id, user_id=user_id),
            )

        updated = unwrap(update_feedback(
            enrollment, self.clock.now(), rating=rating, feedback=feedback,
        ))
        saved = await self.enrollments.update(updated)
        logger.info(
            "Enrollment feedback recorded",
            extra={"enrollment_id": enrollment_id, "user_id": user_id},
        )
        return saved
