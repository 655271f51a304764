"""Domain Types — identity types, lifecycle enums and field bounds for programs and enrollments.

Invariants:
    - ProgramId, EnrollmentId, UserId wrap opaque strings — never validated beyond non-empty
    - All valid states encoded as Enums — no raw string matching in core logic
    - Field bounds live here as the single source of truth (entities + schemas import them)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and to DB string columns without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ProgramId = NewType("ProgramId", str)
EnrollmentId = NewType("EnrollmentId", str)
UserId = NewType("UserId", str)


# ─── Bounds ──────────────────────────────────────────────────────

TITLE_MIN_LENGTH: int = 5
TITLE_MAX_LENGTH: int = 255
DESCRIPTION_MIN_LENGTH: int = 20
RATING_MIN: int = 1
RATING_MAX: int = 5
FEEDBACK_MAX_LENGTH: int = 2000


# ─── Enums ───────────────────────────────────────────────────────

class ProgramType(str, Enum):
    """Kind of offering — presentation and filtering only, no behavior attached."""
    ACCELERATION = "acceleration"
    WORKSHOP = "workshop"
    BOOTCAMP = "bootcamp"
    MENTORSHIP = "mentorship"
    COURSE = "course"
    OTHER = "other"


class ProgramStatus(str, Enum):
    """Program lifecycle: upcoming -> active -> completed; upcoming|active -> cancelled."""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EnrollmentStatus(str, Enum):
    """Enrollment lifecycle: enrolled -> completed|dropped|rejected; dropped|rejected -> enrolled."""
    ENROLLED = "enrolled"
    COMPLETED = "completed"
    DROPPED = "dropped"
    REJECTED = "rejected"


PROGRAM_TYPES: frozenset[str] = frozenset(t.value for t in ProgramType)
PROGRAM_STATUSES: frozenset[str] = frozenset(s.value for s in ProgramStatus)
ENROLLMENT_STATUSES: frozenset[str] = frozenset(s.value for s in EnrollmentStatus)
