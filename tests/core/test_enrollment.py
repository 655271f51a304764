"""Program Enrollment — tests for construction rules, transitions and feedback.

Tests cover:
    - Construction rejects blank ids, bad ratings/feedback, inconsistent completion
    - complete/drop/reject only from enrolled; completed is absorbing
    - reenroll restores dropped/rejected and keeps enrolled_at
    - set_rating/set_feedback/update_feedback validation and updated_at advance
"""

from datetime import timedelta

import pytest

from program_lifecycle.core.domain_types import EnrollmentStatus
from program_lifecycle.core.enrollment import (
    complete_enrollment,
    drop_enrollment,
    has_feedback,
    is_active,
    is_completed,
    new_enrollment,
    reenroll,
    reject_enrollment,
    set_feedback,
    set_rating,
    update_feedback,
)
from program_lifecycle.core.errors import InvalidStateError, ValidationError
from tests.core.factories import NOW, make_enrollment


def _completed(**overrides):
    fields = dict(status="completed", completed_at=NOW - timedelta(hours=1))
    fields.update(overrides)
    return make_enrollment(**fields)


# ─── Construction ────────────────────────────────────────────────

def test_new_enrollment_is_enrolled_at_now():
    enrollment = new_enrollment("enr-7", "prog-1", "user-1", NOW)
    assert enrollment.status is EnrollmentStatus.ENROLLED
    assert enrollment.enrolled_at == enrollment.created_at == enrollment.updated_at == NOW
    assert is_active(enrollment)
    assert not has_feedback(enrollment)


@pytest.mark.parametrize("overrides, message", [
    ({"id": ""}, "Enrollment ID cannot be empty"),
    ({"program_id": " "}, "Program ID cannot be empty"),
    ({"user_id": ""}, "User ID cannot be empty"),
    ({"status": "waitlisted"}, "Invalid enrollment status: waitlisted"),
    ({"rating": 0}, "Rating must be between 1 and 5"),
    ({"rating": 6}, "Rating must be between 1 and 5"),
    ({"rating": 4.5}, "Rating must be a whole number"),
    ({"rating": True}, "Rating must be a whole number"),
    ({"feedback": "x" * 2001}, "Feedback cannot exceed 2000 characters"),
    ({"status": "completed"}, "Completed enrollments must have completion date"),
])
def test_invalid_fields_raise_validation_error(overrides, message):
    with pytest.raises(ValidationError) as exc:
        make_enrollment(**overrides)
    assert exc.value.message == message


def test_completion_before_enrollment_rejected():
    with pytest.raises(ValidationError, match="Completion date cannot be before enrollment date"):
        _completed(completed_at=NOW - timedelta(days=1))


# ─── Transitions ─────────────────────────────────────────────────

def test_complete_sets_completed_at_and_optional_feedback():
    completed = complete_enrollment(make_enrollment(), NOW, rating=5, feedback="Great")
    assert completed.status == EnrollmentStatus.COMPLETED
    assert completed.completed_at == NOW
    assert completed.completed_at >= completed.enrolled_at
    assert (completed.rating, completed.feedback) == (5, "Great")
    assert is_completed(completed)


def test_complete_with_invalid_rating_returns_validation_error():
    enrollment = make_enrollment()
    result = complete_enrollment(enrollment, NOW, rating=9)
    assert isinstance(result, ValidationError)
    assert enrollment.status == EnrollmentStatus.ENROLLED


def test_drop_and_reject_from_enrolled():
    assert drop_enrollment(make_enrollment(), NOW).status == EnrollmentStatus.DROPPED
    assert reject_enrollment(make_enrollment(), NOW).status == EnrollmentStatus.REJECTED


@pytest.mark.parametrize("transition, status, message", [
    (complete_enrollment, "dropped", "Only active enrollments can be completed"),
    (complete_enrollment, "rejected", "Only active enrollments can be completed"),
    (drop_enrollment, "dropped", "Only active enrollments can be dropped"),
    (reject_enrollment, "rejected", "Only active enrollments can be rejected"),
    (reenroll, "enrolled", "Already enrolled"),
])
def test_illegal_transitions_leave_enrollment_unchanged(transition, status, message):
    enrollment = make_enrollment(status=status)
    result = transition(enrollment, NOW)
    assert isinstance(result, InvalidStateError)
    assert result.message == message
    assert enrollment == make_enrollment(status=status)


@pytest.mark.parametrize("transition", [
    complete_enrollment, drop_enrollment, reject_enrollment, reenroll,
])
def test_completed_is_absorbing(transition):
    enrollment = _completed()
    result = transition(enrollment, NOW)
    assert isinstance(result, InvalidStateError)
    assert enrollment.status == EnrollmentStatus.COMPLETED


def test_reenroll_completed_message():
    result = reenroll(_completed(), NOW)
    assert result.message == "Cannot re-enroll in completed program"


@pytest.mark.parametrize("status", ["dropped", "rejected"])
def test_reenroll_keeps_original_enrolled_at(status):
    enrollment = make_enrollment(status=status)
    later = NOW + timedelta(days=3)
    restored = reenroll(enrollment, later)
    assert restored.status == EnrollmentStatus.ENROLLED
    assert restored.enrolled_at == enrollment.enrolled_at
    assert restored.id == enrollment.id
    assert restored.updated_at == later


# ─── Feedback ────────────────────────────────────────────────────

def test_set_rating_out_of_range_is_validation_error():
    result = set_rating(_completed(), 6, NOW)
    assert isinstance(result, ValidationError)
    assert result.message == "Rating must be between 1 and 5"


def test_set_rating_on_completed_advances_updated_at():
    enrollment = _completed()
    later = NOW + timedelta(minutes=1)
    rated = set_rating(enrollment, 5, later)
    assert rated.rating == 5
    assert rated.updated_at == later > enrollment.updated_at


def test_set_feedback_too_long():
    result = set_feedback(_completed(), "y" * 2001, NOW)
    assert isinstance(result, ValidationError)


def test_update_feedback_requires_completed():
    result = update_feedback(make_enrollment(), NOW, rating=4)
    assert isinstance(result, InvalidStateError)
    assert result.message == "Can only provide feedback for completed enrollments"


def test_update_feedback_sets_both_values():
    updated = update_feedback(_completed(), NOW, rating=4, feedback="Solid content")
    assert (updated.rating, updated.feedback) == (4, "Solid content")
    assert has_feedback(updated)


def test_update_feedback_keeps_unset_value():
    enrollment = _completed(rating=3, feedback="ok")
    updated = update_feedback(enrollment, NOW, feedback="better than ok")
    assert updated.rating == 3
    assert updated.feedback == "better than ok"


def test_update_feedback_stops_at_first_invalid_value():
    enrollment = _completed(rating=3)
    result = update_feedback(enrollment, NOW, rating=0, feedback="fine")
    assert isinstance(result, ValidationError)
    assert enrollment.rating == 3
