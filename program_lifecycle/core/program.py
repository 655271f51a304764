"""Program — immutable program value, its validation rules and pure lifecycle transitions.

Invariants:
    - A Program instance is always valid: __post_init__ raises ValidationError otherwise
    - Transitions never mutate: they return a NEW Program or a LifecycleError instance
    - upcoming -> active -> completed; upcoming|active -> cancelled; completed/cancelled are terminal
    - participants >= 0 and, when max_participants is set, participants <= max_participants
    - updated_at never moves backwards (max of previous value and `now`)

Design Decisions:
    - Frozen dataclass + return-the-error transitions: no partially mutated program is ever
      observable, and callers decide where to raise (shell uses errors.unwrap)
    - `now` is a parameter everywhere: core never reads the clock, tests are deterministic
    - participants is only moved by increment/decrement — the admission accounting seam
"""

from dataclasses import dataclass, replace
from datetime import datetime

from program_lifecycle.core.domain_types import (
    DESCRIPTION_MIN_LENGTH,
    PROGRAM_STATUSES,
    PROGRAM_TYPES,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
    ProgramStatus,
    ProgramType,
)
from program_lifecycle.core.errors import (
    ErrorContext,
    InvalidStateError,
    LifecycleError,
    ValidationError,
)

UPDATABLE_FIELDS: frozenset[str] = frozenset({
    "title", "description", "type", "start_date", "end_date", "duration",
    "location", "max_participants", "instructor", "featured", "skills",
    "price", "image_url",
})


@dataclass(frozen=True)
class Program:
    """Course, workshop, bootcamp or similar offering — pure value, no IO."""

    id: str
    title: str
    description: str
    type: ProgramType
    start_date: datetime
    end_date: datetime
    duration: str
    instructor: str
    created_by: str
    created_at: datetime
    updated_at: datetime
    status: ProgramStatus = ProgramStatus.UPCOMING
    participants: int = 0
    max_participants: int | None = None
    location: str | None = None
    featured: bool = False
    skills: tuple[str, ...] = ()
    price: str | None = None
    image_url: str | None = None

    def __post_init__(self) -> None:
        violation = program_violation(self)
        if violation:
            raise ValidationError(violation, ErrorContext(program_id=self.id or None))
        # Normalise raw strings/lists coming from persistence or API payloads
        object.__setattr__(self, "type", ProgramType(self.type))
        object.__setattr__(self, "status", ProgramStatus(self.status))
        object.__setattr__(self, "skills", tuple(self.skills))


def _blank(value: str | None) -> bool:
    return not value or not str(value).strip()


def program_violation(program: Program) -> str | None:
    """Return the first broken program rule, or None when the program is valid."""
    if _blank(program.id):
        return "Program ID cannot be empty"

    if _blank(program.title):
        return "Title cannot be empty"
    if len(program.title) < TITLE_MIN_LENGTH:
        return f"Title must be at least {TITLE_MIN_LENGTH} characters"
    if len(program.title) > TITLE_MAX_LENGTH:
        return f"Title cannot exceed {TITLE_MAX_LENGTH} characters"

    if _blank(program.description):
        return "Description cannot be empty"
    if len(program.description) < DESCRIPTION_MIN_LENGTH:
        return f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters"

    if _blank(program.instructor):
        return "Instructor cannot be empty"
    if _blank(program.duration):
        return "Duration cannot be empty"

    if not isinstance(program.start_date, datetime):
        return "Start date is required"
    if not isinstance(program.end_date, datetime):
        return "End date is required"
    # Same-day programs (one-day workshops) are allowed
    if program.start_date > program.end_date:
        return "Start date cannot be after end date"

    if program.participants < 0:
        return "Participants cannot be negative"
    if program.max_participants is not None:
        if program.max_participants <= 0:
            return "Max participants must be positive"
        if program.participants > program.max_participants:
            return "Participants cannot exceed max participants"

    if program.type not in PROGRAM_TYPES:
        return f"Invalid program type: {program.type}"
    if program.status not in PROGRAM_STATUSES:
        return f"Invalid program status: {program.status}"

    if _blank(program.created_by):
        return "Creator ID cannot be empty"
    if program.created_at > program.updated_at:
        return "Created date cannot be after updated date"

    return None


def derive_initial_status(
    start_date: datetime, end_date: datetime, now: datetime,
) -> ProgramStatus:
    """Status of a freshly created program, from `now` versus its date window."""
    if now > end_date:
        return ProgramStatus.COMPLETED
    if start_date <= now:
        return ProgramStatus.ACTIVE
    return ProgramStatus.UPCOMING


def new_program(
    id: str,
    title: str,
    description: str,
    type: ProgramType | str,
    start_date: datetime,
    end_date: datetime,
    duration: str,
    instructor: str,
    created_by: str,
    now: datetime,
    *,
    location: str | None = None,
    max_participants: int | None = None,
    price: str | None = None,
    image_url: str | None = None,
    featured: bool = False,
    skills: tuple[str, ...] | list[str] = (),
) -> Program:
    """Create a brand-new program with zero participants. Raises ValidationError."""
    return Program(
        id=id,
        title=title,
        description=description,
        type=type,
        start_date=start_date,
        end_date=end_date,
        duration=duration,
        instructor=instructor,
        created_by=created_by,
        created_at=now,
        updated_at=now,
        status=derive_initial_status(start_date, end_date, now),
        participants=0,
        max_participants=max_participants,
        location=location,
        featured=featured,
        skills=tuple(skills),
        price=price,
        image_url=image_url,
    )


def _evolve(program: Program, now: datetime, **changes) -> Program | LifecycleError:
    """Copy with changes and an advanced updated_at; validation failure is returned."""
    changes.setdefault("updated_at", max(program.updated_at, now))
    try:
        return replace(program, **changes)
    except ValidationError as exc:
        return exc


def _illegal(program: Program, message: str) -> InvalidStateError:
    return InvalidStateError(message, ErrorContext(program_id=program.id))


# ─── Status transitions ──────────────────────────────────────────

def start_program(program: Program, now: datetime) -> Program | LifecycleError:
    if program.status != ProgramStatus.UPCOMING:
        return _illegal(program, "Only upcoming programs can be started")
    return _evolve(program, now, status=ProgramStatus.ACTIVE)


def complete_program(program: Program, now: datetime) -> Program | LifecycleError:
    if program.status != ProgramStatus.ACTIVE:
        return _illegal(program, "Only active programs can be completed")
    return _evolve(program, now, status=ProgramStatus.COMPLETED)


def cancel_program(program: Program, now: datetime) -> Program | LifecycleError:
    if program.status == ProgramStatus.COMPLETED:
        return _illegal(program, "Cannot cancel a completed program")
    if program.status == ProgramStatus.CANCELLED:
        return _illegal(program, "Program is already cancelled")
    return _evolve(program, now, status=ProgramStatus.CANCELLED)


_TRANSITIONS = {
    ProgramStatus.ACTIVE: start_program,
    ProgramStatus.COMPLETED: complete_program,
    ProgramStatus.CANCELLED: cancel_program,
}


def transition_program(
    program: Program, target: ProgramStatus, now: datetime,
) -> Program | LifecycleError:
    """Route a requested status change through the state machine."""
    if target == program.status:
        return program
    transition = _TRANSITIONS.get(ProgramStatus(target))
    if transition is None:
        return _illegal(program, "Programs cannot return to upcoming")
    return transition(program, now)


# ─── Presentation & details ──────────────────────────────────────

def feature_program(program: Program, now: datetime) -> Program | LifecycleError:
    return _evolve(program, now, featured=True)


def unfeature_program(program: Program, now: datetime) -> Program | LifecycleError:
    return _evolve(program, now, featured=False)


def update_program(
    program: Program, now: datetime, **changes,
) -> Program | LifecycleError:
    """Apply owner edits to descriptive, scheduling and capacity fields.

    Status and participants are deliberately absent from UPDATABLE_FIELDS:
    status moves only through transition_program, participants only through
    the accounting functions below.
    """
    unknown = sorted(set(changes) - UPDATABLE_FIELDS)
    if unknown:
        return ValidationError(
            f"Fields cannot be updated: {', '.join(unknown)}",
            ErrorContext(program_id=program.id),
        )
    if "skills" in changes:
        changes["skills"] = tuple(changes["skills"] or ())
    return _evolve(program, now, **changes)


# ─── Admission accounting ────────────────────────────────────────

def increment_participants(program: Program, now: datetime) -> Program | LifecycleError:
    """One more participant. Fails validation when it would exceed max_participants."""
    return _evolve(program, now, participants=program.participants + 1)


def decrement_participants(program: Program, now: datetime) -> Program | LifecycleError:
    """One fewer participant; a no-op at zero."""
    if program.participants == 0:
        return program
    return _evolve(program, now, participants=program.participants - 1)


# ─── Predicates ──────────────────────────────────────────────────

def is_full(program: Program) -> bool:
    if program.max_participants is None:
        return False
    return program.participants >= program.max_participants


def is_accepting_enrollments(program: Program, now: datetime) -> bool:
    """Admission predicate: upcoming, not full, and not yet started by the clock."""
    if program.status != ProgramStatus.UPCOMING:
        return False
    if is_full(program):
        return False
    return now < program.start_date


def has_started(program: Program, now: datetime) -> bool:
    """Started by status, or an upcoming program whose start date has passed."""
    if program.status in (ProgramStatus.ACTIVE, ProgramStatus.COMPLETED):
        return True
    return program.status == ProgramStatus.UPCOMING and now >= program.start_date


def is_active(program: Program) -> bool:
    return program.status == ProgramStatus.ACTIVE


def is_finished(program: Program) -> bool:
    return program.status in (ProgramStatus.COMPLETED, ProgramStatus.CANCELLED)


def is_creator(program: Program, user_id: str) -> bool:
    return program.created_by == user_id
