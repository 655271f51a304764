"""Enrollment Schemas — feedback payload and enrollment representations.

Invariants:
    - EnrollmentFeedbackUpdate: rating 1–5, feedback <= 2000 chars, at least one present
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from program_lifecycle.core.domain_types import (
    FEEDBACK_MAX_LENGTH,
    RATING_MAX,
    RATING_MIN,
    EnrollmentStatus,
)
from program_lifecycle.core.enrollment import ProgramEnrollment
from program_lifecycle.core.repository_protocols import EnrollmentWithDetails
from program_lifecycle.schemas.program import ProgramResponse


class EnrollmentFeedbackUpdate(BaseModel):
    rating: int | None = Field(None, ge=RATING_MIN, le=RATING_MAX, strict=True)
    feedback: str | None = Field(None, max_length=FEEDBACK_MAX_LENGTH)

    @model_validator(mode="after")
    def require_rating_or_feedback(self):
        if self.rating is None and self.feedback is None:
            raise ValueError("rating or feedback is required")
        return self


class EnrollmentResponse(BaseModel):
    id: str
    program_id: str
    user_id: str
    status: EnrollmentStatus
    enrolled_at: datetime
    completed_at: datetime | None = None
    rating: int | None = None
    feedback: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, enrollment: ProgramEnrollment) -> "EnrollmentResponse":
        return cls(
            id=enrollment.id,
            program_id=enrollment.program_id,
            user_id=enrollment.user_id,
            status=enrollment.status,
            enrolled_at=enrollment.enrolled_at,
            completed_at=enrollment.completed_at,
            rating=enrollment.rating,
            feedback=enrollment.feedback,
            created_at=enrollment.created_at,
            updated_at=enrollment.updated_at,
        )


class EnrollmentWithProgramResponse(EnrollmentResponse):
    """Enrollment plus the program it belongs to (the "my programs" view)."""
    program: ProgramResponse

    @classmethod
    def from_details(
        cls, details: EnrollmentWithDetails,
    ) -> "EnrollmentWithProgramResponse":
        base = EnrollmentResponse.from_domain(details.enrollment)
        return cls(
            **base.model_dump(),
            program=ProgramResponse.from_domain(details.program),
        )


class EnrollmentListResponse(BaseModel):
    enrollments: list[EnrollmentWithProgramResponse]
