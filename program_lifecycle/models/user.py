"""User Profile ORM — read-only projection of platform users for creator/participant details.

Invariants:
    - Rows are owned by the identity service; this package only reads them
    - Programs and enrollments reference users by id without a foreign key

Design Decisions:
    - No FK from programs/enrollments: identity lives in another bounded context,
      joins are outer joins and a missing profile yields `None` details
"""

from datetime import datetime, timezone

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from program_lifecycle.db.base import Base, UtcDateTime


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    professional_title: Mapped[str | None] = mapped_column(
        String(255), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
