"""ORM Models — SQLAlchemy declarative models for programs, enrollments and user profiles.

Invariants:
    - All models inherit from Base (db/base.py)
    - Program is the aggregate root for its skills and enrollments

Design Decisions:
    - One file per table group for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from program_lifecycle.models.user import UserModel  # noqa: F401
from program_lifecycle.models.program import ProgramModel, ProgramSkillModel  # noqa: F401
from program_lifecycle.models.enrollment import EnrollmentModel  # noqa: F401
