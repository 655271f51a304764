"""Programs Routes — HTTP adapter over the program and enrollment use cases.

Invariants:
    - Routes contain no business logic: parse, call one use case, shape the response
    - Mutating routes require the acting user (X-User-Id)
    - Domain failures are raised, never caught here; the global handler maps them

Design Decisions:
    - Enrollment routes live under /programs to keep one resource tree
      (/programs/{id}/enroll, /programs/enrollments/{id})
    - Fixed-path routes (/my/enrollments, /enrollments/...) need more segments than
      /{program_id}, so ordering cannot shadow them
"""

from fastapi import APIRouter, Depends, Query, Response, status

from program_lifecycle.api.dependencies import (
    get_clock,
    get_current_user_id,
    get_enrollment_repository,
    get_program_repository,
)
from program_lifecycle.core.domain_types import ProgramStatus, ProgramType
from program_lifecycle.core.repository_protocols import Clock, ProgramFilters
from program_lifecycle.infrastructure.enrollment_repository import SqlEnrollmentRepository
from program_lifecycle.infrastructure.program_repository import SqlProgramRepository
from program_lifecycle.schemas.enrollment import (
    EnrollmentFeedbackUpdate,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollmentWithProgramResponse,
)
from program_lifecycle.schemas.program import (
    ProgramCreate,
    ProgramListResponse,
    ProgramResponse,
    ProgramUpdate,
)
from program_lifecycle.services.cancel_enrollment import CancelEnrollment
from program_lifecycle.services.enroll_in_program import EnrollInProgram
from program_lifecycle.services.manage_enrollments import (
    GetUserEnrollments,
    UpdateEnrollmentFeedback,
)
from program_lifecycle.services.manage_programs import (
    CreateProgram,
    DeleteProgram,
    GetProgram,
    GetPrograms,
    UpdateProgram,
)

router = APIRouter(prefix="/api/v1/programs", tags=["programs"])


# ─── Programs ────────────────────────────────────────────────────

@router.get("", response_model=ProgramListResponse)
async def list_programs(
    type: ProgramType | None = None,
    status_filter: ProgramStatus | None = Query(None, alias="status"),
    skills: str | None = Query(None, description="Comma-separated, all required"),
    featured: bool | None = None,
    search: str | None = Query(None, max_length=200),
    created_by: str | None = None,
    programs: SqlProgramRepository = Depends(get_program_repository),
):
    filters = ProgramFilters(
        type=type,
        status=status_filter,
        skills=tuple(s.strip() for s in skills.split(",") if s.strip()) if skills else (),
        featured=featured,
        search=search or None,
        created_by=created_by,
    )
    found, total = await GetPrograms(programs).execute(filters)
    return ProgramListResponse(
        programs=[ProgramResponse.from_domain(p.program, p.creator) for p in found],
        total=total,
    )


@router.get("/my/enrollments", response_model=EnrollmentListResponse)
async def list_my_enrollments(
    user_id: str = Depends(get_current_user_id),
    enrollments: SqlEnrollmentRepository = Depends(get_enrollment_repository),
):
    found = await GetUserEnrollments(enrollments).execute(user_id)
    return EnrollmentListResponse(
        enrollments=[EnrollmentWithProgramResponse.from_details(d) for d in found],
    )


@router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(
    program_id: str,
    programs: SqlProgramRepository = Depends(get_program_repository),
):
    found = await GetProgram(programs).execute(program_id)
    return ProgramResponse.from_domain(found.program, found.creator)


@router.post(
    "", response_model=ProgramResponse, status_code=status.HTTP_201_CREATED,
)
async def create_program(
    body: ProgramCreate,
    user_id: str = Depends(get_current_user_id),
    programs: SqlProgramRepository = Depends(get_program_repository),
    clock: Clock = Depends(get_clock),
):
    program = await CreateProgram(programs, clock).execute(
        created_by=user_id, **body.model_dump(),
    )
    return ProgramResponse.from_domain(program)


@router.put("/{program_id}", response_model=ProgramResponse)
async def update_program(
    program_id: str,
    body: ProgramUpdate,
    user_id: str = Depends(get_current_user_id),
    programs: SqlProgramRepository = Depends(get_program_repository),
    clock: Clock = Depends(get_clock),
):
    program = await UpdateProgram(programs, clock).execute(
        program_id, user_id, body.changes(), status=body.status,
    )
    return ProgramResponse.from_domain(program)


@router.delete("/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_program(
    program_id: str,
    user_id: str = Depends(get_current_user_id),
    programs: SqlProgramRepository = Depends(get_program_repository),
):
    await DeleteProgram(programs).execute(program_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Enrollments ─────────────────────────────────────────────────

@router.post(
    "/{program_id}/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_program(
    program_id: str,
    user_id: str = Depends(get_current_user_id),
    programs: SqlProgramRepository = Depends(get_program_repository),
    enrollments: SqlEnrollmentRepository = Depends(get_enrollment_repository),
    clock: Clock = Depends(get_clock),
):
    enrollment = await EnrollInProgram(programs, enrollments, clock).execute(
        program_id, user_id,
    )
    return EnrollmentResponse.from_domain(enrollment)


@router.delete(
    "/enrollments/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT,
)
async def cancel_enrollment(
    enrollment_id: str,
    user_id: str = Depends(get_current_user_id),
    enrollments: SqlEnrollmentRepository = Depends(get_enrollment_repository),
):
    await CancelEnrollment(enrollments).execute(enrollment_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/enrollments/{enrollment_id}/feedback", response_model=EnrollmentResponse,
)
async def update_enrollment_feedback(
    enrollment_id: str,
    body: EnrollmentFeedbackUpdate,
    user_id: str = Depends(get_current_user_id),
    enrollments: SqlEnrollmentRepository = Depends(get_enrollment_repository),
    clock: Clock = Depends(get_clock),
):
    enrollment = await UpdateEnrollmentFeedback(enrollments, clock).execute(
        enrollment_id, user_id, rating=body.rating, feedback=body.feedback,
    )
    return EnrollmentResponse.from_domain(enrollment)
