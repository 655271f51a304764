"""Program Enrollment — immutable user-in-program value with its lifecycle and feedback rules.

Invariants:
    - A ProgramEnrollment instance is always valid: __post_init__ raises ValidationError otherwise
    - enrolled -> completed | dropped | rejected; dropped | rejected -> enrolled (re-enrollment)
    - completed is absorbing: no transition leaves it
    - status == completed implies completed_at is set, and completed_at >= enrolled_at
    - rating is an int in [1, 5]; feedback is at most 2000 chars
    - reenroll keeps the original enrolled_at

Design Decisions:
    - Same value/transition style as core/program.py: transitions return a new value or
      a LifecycleError instance, nothing is mutated in place
    - Feedback after completion goes through update_feedback (status-gated); set_rating and
      set_feedback are the raw field setters it composes
"""

from dataclasses import dataclass, replace
from datetime import datetime

from program_lifecycle.core.domain_types import (
    ENROLLMENT_STATUSES,
    FEEDBACK_MAX_LENGTH,
    RATING_MAX,
    RATING_MIN,
    EnrollmentStatus,
)
from program_lifecycle.core.errors import (
    ErrorContext,
    InvalidStateError,
    LifecycleError,
    ValidationError,
)


@dataclass(frozen=True)
class ProgramEnrollment:
    """One user's relationship to one program — pure value, no IO."""

    id: str
    program_id: str
    user_id: str
    enrolled_at: datetime
    created_at: datetime
    updated_at: datetime
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED
    completed_at: datetime | None = None
    rating: int | None = None
    feedback: str | None = None

    def __post_init__(self) -> None:
        violation = enrollment_violation(self)
        if violation:
            raise ValidationError(violation, _context(self))
        object.__setattr__(self, "status", EnrollmentStatus(self.status))


def _context(enrollment: ProgramEnrollment) -> ErrorContext:
    return ErrorContext(
        enrollment_id=enrollment.id or None,
        program_id=enrollment.program_id or None,
        user_id=enrollment.user_id or None,
    )


def _blank(value: str | None) -> bool:
    return not value or not str(value).strip()


def rating_violation(rating: object) -> str | None:
    if isinstance(rating, bool) or not isinstance(rating, int):
        return "Rating must be a whole number"
    if rating < RATING_MIN or rating > RATING_MAX:
        return f"Rating must be between {RATING_MIN} and {RATING_MAX}"
    return None


def feedback_violation(feedback: str) -> str | None:
    if len(feedback) > FEEDBACK_MAX_LENGTH:
        return f"Feedback cannot exceed {FEEDBACK_MAX_LENGTH} characters"
    return None


def enrollment_violation(enrollment: ProgramEnrollment) -> str | None:
    """Return the first broken enrollment rule, or None when the enrollment is valid."""
    if _blank(enrollment.id):
        return "Enrollment ID cannot be empty"
    if _blank(enrollment.program_id):
        return "Program ID cannot be empty"
    if _blank(enrollment.user_id):
        return "User ID cannot be empty"

    if enrollment.status not in ENROLLMENT_STATUSES:
        return f"Invalid enrollment status: {enrollment.status}"

    if enrollment.rating is not None:
        violation = rating_violation(enrollment.rating)
        if violation:
            return violation
    if enrollment.feedback is not None:
        violation = feedback_violation(enrollment.feedback)
        if violation:
            return violation

    if enrollment.status == EnrollmentStatus.COMPLETED and enrollment.completed_at is None:
        return "Completed enrollments must have completion date"
    if enrollment.completed_at is not None and enrollment.completed_at < enrollment.enrolled_at:
        return "Completion date cannot be before enrollment date"

    if enrollment.created_at > enrollment.updated_at:
        return "Created date cannot be after updated date"

    return None


def new_enrollment(
    id: str, program_id: str, user_id: str, now: datetime,
) -> ProgramEnrollment:
    """Fresh `enrolled` enrollment. Raises ValidationError on blank identifiers."""
    return ProgramEnrollment(
        id=id,
        program_id=program_id,
        user_id=user_id,
        enrolled_at=now,
        created_at=now,
        updated_at=now,
        status=EnrollmentStatus.ENROLLED,
    )


def _evolve(
    enrollment: ProgramEnrollment, now: datetime, **changes,
) -> ProgramEnrollment | LifecycleError:
    changes.setdefault("updated_at", max(enrollment.updated_at, now))
    try:
        return replace(enrollment, **changes)
    except ValidationError as exc:
        return exc


def _illegal(enrollment: ProgramEnrollment, message: str) -> InvalidStateError:
    return InvalidStateError(message, _context(enrollment))


def _invalid(enrollment: ProgramEnrollment, message: str) -> ValidationError:
    return ValidationError(message, _context(enrollment))


# ─── Status transitions ──────────────────────────────────────────

def complete_enrollment(
    enrollment: ProgramEnrollment,
    now: datetime,
    rating: int | None = None,
    feedback: str | None = None,
) -> ProgramEnrollment | LifecycleError:
    """Mark as completed at `now`, optionally recording rating and feedback."""
    if enrollment.status != EnrollmentStatus.ENROLLED:
        return _illegal(enrollment, "Only active enrollments can be completed")
    changes: dict = {"status": EnrollmentStatus.COMPLETED, "completed_at": now}
    if rating is not None:
        changes["rating"] = rating
    if feedback is not None:
        changes["feedback"] = feedback
    return _evolve(enrollment, now, **changes)


def drop_enrollment(
    enrollment: ProgramEnrollment, now: datetime,
) -> ProgramEnrollment | LifecycleError:
    if enrollment.status != EnrollmentStatus.ENROLLED:
        return _illegal(enrollment, "Only active enrollments can be dropped")
    return _evolve(enrollment, now, status=EnrollmentStatus.DROPPED)


def reject_enrollment(
    enrollment: ProgramEnrollment, now: datetime,
) -> ProgramEnrollment | LifecycleError:
    """Administrative refusal — same mechanics as drop, different actor."""
    if enrollment.status != EnrollmentStatus.ENROLLED:
        return _illegal(enrollment, "Only active enrollments can be rejected")
    return _evolve(enrollment, now, status=EnrollmentStatus.REJECTED)


def reenroll(
    enrollment: ProgramEnrollment, now: datetime,
) -> ProgramEnrollment | LifecycleError:
    """Bring a dropped or rejected enrollment back to enrolled; enrolled_at is kept."""
    if enrollment.status == EnrollmentStatus.ENROLLED:
        return _illegal(enrollment, "Already enrolled")
    if enrollment.status == EnrollmentStatus.COMPLETED:
        return _illegal(enrollment, "Cannot re-enroll in completed program")
    return _evolve(enrollment, now, status=EnrollmentStatus.ENROLLED)


# ─── Feedback ────────────────────────────────────────────────────

def set_rating(
    enrollment: ProgramEnrollment, rating: int, now: datetime,
) -> ProgramEnrollment | LifecycleError:
    violation = rating_violation(rating)
    if violation:
        return _invalid(enrollment, violation)
    return _evolve(enrollment, now, rating=rating)


def set_feedback(
    enrollment: ProgramEnrollment, feedback: str, now: datetime,
) -> ProgramEnrollment | LifecycleError:
    violation = feedback_violation(feedback)
    if violation:
        return _invalid(enrollment, violation)
    return _evolve(enrollment, now, feedback=feedback)


def update_feedback(
    enrollment: ProgramEnrollment,
    now: datetime,
    rating: int | None = None,
    feedback: str | None = None,
) -> ProgramEnrollment | LifecycleError:
    """Revise rating/feedback after completion. Either value may be omitted."""
    if enrollment.status != EnrollmentStatus.COMPLETED:
        return _illegal(enrollment, "Can only provide feedback for completed enrollments")

    result: ProgramEnrollment | LifecycleError = enrollment
    if rating is not None:
        result = set_rating(result, rating, now)
    if feedback is not None and not isinstance(result, LifecycleError):
        result = set_feedback(result, feedback, now)
    if isinstance(result, LifecycleError):
        return result
    return _evolve(result, now)


# ─── Predicates ──────────────────────────────────────────────────

def is_active(enrollment: ProgramEnrollment) -> bool:
    return enrollment.status == EnrollmentStatus.ENROLLED


def is_completed(enrollment: ProgramEnrollment) -> bool:
    return enrollment.status == EnrollmentStatus.COMPLETED


def has_feedback(enrollment: ProgramEnrollment) -> bool:
    return enrollment.rating is not None or enrollment.feedback is not None
