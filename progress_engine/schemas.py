"""Immutable records exchanged between the repository and the domain layer.

Every record is a frozen Pydantic model: the domain components never mutate
what the repository returned, they ask the repository for a new version.
A failed write therefore leaves the caller's view of the world untouched.

LessonProgress carries an explicit tagged state instead of a pair of
nullable timestamps::

    NotStarted -> InProgress(started_at) -> Completed(started_at, completed_at)
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

from progress_engine.models.enums import (
    ContentType,
    CourseStatus,
    DifficultyLevel,
    LessonProgressStatus,
    PaymentMethod,
)


def _ensure_utc(value: datetime | None) -> datetime | None:
    # Some backends (SQLite) hand back naive datetimes; every timestamp is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDateTime = Annotated[datetime, AfterValidator(_ensure_utc)]
OptionalUtcDateTime = Annotated[datetime | None, AfterValidator(_ensure_utc)]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class Attachment(_Record):
    type: str | None = None
    url: str | None = None
    size: int | None = None
    name: str | None = None


class CourseRecord(_Record):
    course_id: UUID
    network_id: UUID
    category_id: UUID | None = None
    instructor_id: UUID
    title: str
    slug: str
    price: Decimal = Decimal("0.00")
    currency: str = "USD"
    is_free: bool = True
    difficulty_level: DifficultyLevel = DifficultyLevel.BEGINNER
    status: CourseStatus = CourseStatus.DRAFT
    estimated_duration_hours: int | None = None
    enrollment_count: int = 0
    rating_average: Decimal = Decimal("0.00")
    rating_count: int = 0
    published_at: OptionalUtcDateTime = None
    created_at: UtcDateTime


class LessonRecord(_Record):
    lesson_id: UUID
    course_id: UUID
    title: str
    slug: str | None = None
    content_type: ContentType = ContentType.TEXT
    sort_order: int = 0
    module_name: str | None = None
    is_preview: bool = False
    estimated_duration_minutes: int | None = None
    attachments: Annotated[list[Attachment], BeforeValidator(lambda v: v or [])] = Field(
        default_factory=list
    )
    created_at: UtcDateTime


class ReviewRecord(_Record):
    review_id: UUID
    course_id: UUID
    reviewer_id: UUID
    rating: int = Field(ge=1, le=5)
    is_approved: bool = False
    created_at: UtcDateTime


# ---------------------------------------------------------------------------
# Enrollment
# ---------------------------------------------------------------------------


class NewEnrollment(_Record):
    """Fields required to create an enrollment."""

    course_id: UUID
    profile_id: UUID
    amount_paid: Decimal = Field(ge=0)
    currency: str = Field(min_length=3, max_length=3)
    payment_method: PaymentMethod
    enrolled_at: UtcDateTime


class EnrollmentRecord(_Record):
    enrollment_id: UUID
    course_id: UUID
    profile_id: UUID
    amount_paid: Decimal = Decimal("0.00")
    currency: str = "USD"
    payment_method: PaymentMethod = PaymentMethod.FREE
    progress_percentage: int = 0
    is_active: bool = True
    enrolled_at: UtcDateTime
    started_at: OptionalUtcDateTime = None
    completed_at: OptionalUtcDateTime = None
    last_accessed_at: OptionalUtcDateTime = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


# ---------------------------------------------------------------------------
# Lesson progress state
# ---------------------------------------------------------------------------


class NotStarted(_Record):
    kind: Literal["not_started"] = "not_started"


class InProgress(_Record):
    kind: Literal["in_progress"] = "in_progress"
    started_at: UtcDateTime


class Completed(_Record):
    kind: Literal["completed"] = "completed"
    started_at: UtcDateTime
    completed_at: UtcDateTime


ProgressState = Annotated[Union[NotStarted, InProgress, Completed], Field(discriminator="kind")]


class LessonProgressRecord(_Record):
    progress_id: UUID
    enrollment_id: UUID
    lesson_id: UUID
    progress_percentage: int = 0
    state: ProgressState = Field(default_factory=NotStarted)

    @property
    def status(self) -> LessonProgressStatus:
        return LessonProgressStatus(self.state.kind)

    @property
    def started_at(self) -> datetime | None:
        return getattr(self.state, "started_at", None)

    @property
    def completed_at(self) -> datetime | None:
        return getattr(self.state, "completed_at", None)

    @property
    def is_completed(self) -> bool:
        return isinstance(self.state, Completed)


def state_from_columns(
    status: LessonProgressStatus,
    started_at: datetime | None,
    completed_at: datetime | None,
) -> NotStarted | InProgress | Completed:
    """Rebuild the tagged state from its persisted columns.

    A row that has a ``completed_at`` is Completed whatever its status
    column says; completion is never lost on read.
    """
    if completed_at is not None:
        return Completed(started_at=started_at or completed_at, completed_at=completed_at)
    if status == LessonProgressStatus.NOT_STARTED or started_at is None:
        return NotStarted()
    return InProgress(started_at=started_at)


def state_to_columns(state: NotStarted | InProgress | Completed) -> dict[str, Any]:
    return {
        "status": LessonProgressStatus(state.kind),
        "started_at": getattr(state, "started_at", None),
        "completed_at": getattr(state, "completed_at", None),
    }
