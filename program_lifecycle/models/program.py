"""Program ORM — persists programs and the skills they teach.

Invariants:
    - id is an opaque string primary key (generated by the service layer)
    - participants is written only by SqlParticipantAccounting
    - CHECK constraints mirror the core capacity invariant as a last line of defence
    - Deleting a program deletes its skills and enrollments

Design Decisions:
    - Skills as child rows, not a JSON column: "has every listed skill" stays a portable
      GROUP BY/HAVING query on both PostgreSQL and SQLite
    - status/type stored as plain strings; core enums validate on rehydration
"""

from datetime import datetime

from sqlalchemy import (
    Boolean, CheckConstraint, ForeignKey, Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from program_lifecycle.db.base import Base, UtcDateTime


class ProgramModel(Base):
    __tablename__ = "programs"
    __table_args__ = (
        CheckConstraint("participants >= 0", name="ck_programs_participants_non_negative"),
        CheckConstraint(
            "max_participants IS NULL OR participants <= max_participants",
            name="ck_programs_participants_within_capacity",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="upcoming", index=True,
    )
    start_date: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    duration: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    participants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    instructor: Mapped[str] = mapped_column(String(255), nullable=False)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    price: Mapped[str | None] = mapped_column(String(50), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)

    skills: Mapped[list["ProgramSkillModel"]] = relationship(
        "ProgramSkillModel", back_populates="program",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="ProgramSkillModel.position",
    )
    enrollments: Mapped[list["EnrollmentModel"]] = relationship(
        "EnrollmentModel", back_populates="program",
        cascade="all, delete-orphan",
    )


class ProgramSkillModel(Base):
    __tablename__ = "program_skills"

    program_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("programs.id", ondelete="CASCADE"), primary_key=True,
    )
    skill: Mapped[str] = mapped_column(String(100), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    program: Mapped["ProgramModel"] = relationship(
        "ProgramModel", back_populates="skills",
    )
