"""Cancel Enrollment — ownership check and hard delete."""

import pytest

from program_lifecycle.core.errors import AuthorizationError, NotFoundError
from program_lifecycle.services.cancel_enrollment import CancelEnrollment
from tests.core.factories import NOW, make_enrollment, make_program
from tests.services.fake_repositories import (
    FakeEnrollmentRepository,
    FakeProgramRepository,
)


def _repo(*enrollments):
    return FakeEnrollmentRepository(FakeProgramRepository(make_program()), *enrollments)


async def test_owner_cancels_enrollment():
    repo = _repo(make_enrollment())
    await CancelEnrollment(repo).execute("enr-1", "user-1")
    assert not await repo.exists("enr-1")
    assert repo.writes == [("delete", "enr-1")]


async def test_completed_enrollment_can_be_cancelled():
    repo = _repo(make_enrollment(status="completed", completed_at=NOW))
    await CancelEnrollment(repo).execute("enr-1", "user-1")
    assert not await repo.exists("enr-1")


async def test_other_user_cannot_cancel():
    repo = _repo(make_enrollment())
    with pytest.raises(AuthorizationError, match="This enrollment does not belong to you"):
        await CancelEnrollment(repo).execute("enr-1", "user-2")
    assert repo.writes == []


async def test_missing_enrollment_is_not_found():
    with pytest.raises(NotFoundError, match="Enrollment not found"):
        await CancelEnrollment(_repo()).execute("enr-404", "user-1")
