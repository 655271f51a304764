"""Program Schemas — create/update payloads and the public program representation.

Invariants:
    - ProgramCreate mirrors the core bounds (title 5–255, description >= 20) so bad input
      fails as a 400 before reaching the core
    - Naive datetimes from clients are read as UTC
    - ProgramUpdate carries only the fields the caller sent (exclude_unset)
    - Entity rules the schema cannot see (dates, capacity vs participants) stay in core

Design Decisions:
    - from_domain() classmethods: routes never hand-assemble response dicts
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator, model_validator

from program_lifecycle.core.domain_types import (
    DESCRIPTION_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
    ProgramStatus,
    ProgramType,
)
from program_lifecycle.core.program import Program
from program_lifecycle.core.repository_protocols import CreatorSummary


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _clean_skills(skills: list[str] | None) -> list[str] | None:
    if skills is None:
        return None
    return [s.strip() for s in skills if s and s.strip()]


class ProgramCreate(BaseModel):
    """Program creation payload."""
    title: str = Field(min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    description: str = Field(min_length=DESCRIPTION_MIN_LENGTH)
    type: ProgramType
    start_date: datetime
    end_date: datetime
    duration: str = Field(min_length=1, max_length=100)
    instructor: str = Field(min_length=1, max_length=255)
    skills: list[str] = Field(default_factory=list)
    location: str | None = Field(None, max_length=255)
    max_participants: int | None = Field(None, gt=0)
    price: str | None = Field(None, max_length=50)
    image_url: str | None = Field(None, max_length=1024)
    featured: bool = False

    @field_validator("title", "description", "duration", "instructor")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v: list[str]) -> list[str]:
        return _clean_skills(v)


class ProgramUpdate(BaseModel):
    """Partial program update; `status` is applied through the state machine."""
    title: str | None = Field(None, min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(None, min_length=DESCRIPTION_MIN_LENGTH)
    type: ProgramType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    duration: str | None = Field(None, min_length=1, max_length=100)
    instructor: str | None = Field(None, min_length=1, max_length=255)
    skills: list[str] | None = None
    location: str | None = Field(None, max_length=255)
    max_participants: int | None = Field(None, gt=0)
    price: str | None = Field(None, max_length=50)
    image_url: str | None = Field(None, max_length=1024)
    featured: bool | None = None
    status: ProgramStatus | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v: list[str] | None) -> list[str] | None:
        return _clean_skills(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in (
            "title", "description", "type", "start_date", "end_date",
            "duration", "instructor", "featured",
        ):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields the caller sent, minus status."""
        return self.model_dump(exclude_unset=True, exclude={"status"})


class CreatorResponse(BaseModel):
    id: str
    name: str
    avatar_url: str | None = None
    professional_title: str | None = None


class ProgramResponse(BaseModel):
    """Public program representation."""
    id: str
    title: str
    description: str
    type: ProgramType
    status: ProgramStatus
    start_date: datetime
    end_date: datetime
    duration: str
    location: str | None = None
    participants: int
    max_participants: int | None = None
    instructor: str
    featured: bool
    skills: list[str]
    price: str | None = None
    image_url: str | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    creator: CreatorResponse | None = None

    @classmethod
    def from_domain(
        cls, program: Program, creator: CreatorSummary | None = None,
    ) -> "ProgramResponse":
        return cls(
            id=program.id,
            title=program.title,
            description=program.description,
            type=program.type,
            status=program.status,
            start_date=program.start_date,
            end_date=program.end_date,
            duration=program.duration,
            location=program.location,
            participants=program.participants,
            max_participants=program.max_participants,
            instructor=program.instructor,
            featured=program.featured,
            skills=list(program.skills),
            price=program.price,
            image_url=program.image_url,
            created_by=program.created_by,
            created_at=program.created_at,
            updated_at=program.updated_at,
            creator=(
                CreatorResponse(
                    id=creator.id,
                    name=creator.name,
                    avatar_url=creator.avatar_url,
                    professional_title=creator.professional_title,
                )
                if creator else None
            ),
        )


class ProgramListResponse(BaseModel):
    programs: list[ProgramResponse]
    total: int
