"""Initial schema — users, programs, program_skills, program_enrollments.

Revision ID: 001_programs_and_enrollments
Revises: None
Create Date: 2026-10-18

users is a read-only projection of the identity service; programs and
enrollments reference it by id without a foreign key.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_programs_and_enrollments"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.String(1024), nullable=True),
        sa.Column("professional_title", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "programs",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="upcoming"),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.String(100), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("participants", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_participants", sa.Integer, nullable=True),
        sa.Column("instructor", sa.String(255), nullable=False),
        sa.Column("featured", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("price", sa.String(50), nullable=True),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("participants >= 0", name="ck_programs_participants_non_negative"),
        sa.CheckConstraint(
            "max_participants IS NULL OR participants <= max_participants",
            name="ck_programs_participants_within_capacity",
        ),
    )
    op.create_index("ix_programs_status", "programs", ["status"])
    op.create_index("ix_programs_created_by", "programs", ["created_by"])

    op.create_table(
        "program_skills",
        sa.Column(
            "program_id", sa.String(64),
            sa.ForeignKey("programs.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("skill", sa.String(100), primary_key=True),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
    )

    op.create_table(
        "program_enrollments",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "program_id", sa.String(64),
            sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="enrolled"),
        sa.Column("enrolled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("feedback", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("program_id", "user_id", name="uq_program_enrollments_program_user"),
        sa.CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)",
            name="ck_program_enrollments_rating_range",
        ),
    )
    op.create_index("ix_program_enrollments_program_id", "program_enrollments", ["program_id"])
    op.create_index("ix_program_enrollments_user_id", "program_enrollments", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_program_enrollments_user_id", table_name="program_enrollments")
    op.drop_index("ix_program_enrollments_program_id", table_name="program_enrollments")
    op.drop_table("program_enrollments")
    op.drop_table("program_skills")
    op.drop_index("ix_programs_created_by", table_name="programs")
    op.drop_index("ix_programs_status", table_name="programs")
    op.drop_table("programs")
    op.drop_table("users")
