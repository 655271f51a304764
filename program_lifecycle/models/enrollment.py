"""Program Enrollment ORM — one row per (program, user) relationship.

Invariants:
    - UNIQUE (program_id, user_id): at most one row, hence at most one active
      enrollment, per user and program — closes the concurrent double-enroll race
    - program_id FK cascades on program deletion
    - rating, when present, is within 1–5 (CHECK mirrors the core rule)

Design Decisions:
    - Dropped/rejected rows are reused on re-enrollment instead of inserting a new row,
      which is what makes the uniqueness constraint sufficient
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from program_lifecycle.db.base import Base, UtcDateTime


class EnrollmentModel(Base):
    __tablename__ = "program_enrollments"
    __table_args__ = (
        UniqueConstraint("program_id", "user_id", name="uq_program_enrollments_program_user"),
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)",
            name="ck_program_enrollments_rating_range",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    program_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="enrolled",
    )
    enrolled_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)

    program: Mapped["ProgramModel"] = relationship(
        "ProgramModel", back_populates="enrollments",
    )
