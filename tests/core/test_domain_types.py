"""Domain Types — verifies identity types, enum members and field bounds.

Tests:
    - NewType wrappers are transparent over str
    - Enums have the expected members and compare equal to their string values
    - Value sets match the enums
"""

from program_lifecycle.core.domain_types import (
    ENROLLMENT_STATUSES,
    PROGRAM_STATUSES,
    PROGRAM_TYPES,
    RATING_MAX,
    RATING_MIN,
    EnrollmentId,
    EnrollmentStatus,
    ProgramId,
    ProgramStatus,
    ProgramType,
    UserId,
)


def test_identity_types_wrap_str():
    assert ProgramId("p-1") == "p-1"
    assert EnrollmentId("e-1") == "e-1"
    assert UserId("u-1") == "u-1"


def test_program_status_has_four_states():
    assert PROGRAM_STATUSES == {"upcoming", "active", "completed", "cancelled"}


def test_enrollment_status_has_four_states():
    assert ENROLLMENT_STATUSES == {"enrolled", "completed", "dropped", "rejected"}


def test_program_types():
    assert PROGRAM_TYPES == {
        "acceleration", "workshop", "bootcamp", "mentorship", "course", "other",
    }


def test_str_enums_compare_to_values():
    assert ProgramStatus.UPCOMING == "upcoming"
    assert EnrollmentStatus("dropped") is EnrollmentStatus.DROPPED
    assert ProgramType.COURSE.value == "course"


def test_rating_bounds():
    assert (RATING_MIN, RATING_MAX) == (1, 5)
