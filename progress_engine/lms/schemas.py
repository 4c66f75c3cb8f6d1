"""Progress API Pydantic V2 schemas.

Follows RORO: request models are separate from response models. Responses
are built from the engine's records (``from_attributes``), never from ORM rows.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from progress_engine.models.enums import (
    ContentType,
    CourseStatus,
    LessonProgressStatus,
    PaymentMethod,
    PaymentStatus,
)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ReconcilePaymentRequest(BaseModel):
    """Payment outcome reported for a pending enrollment."""

    payment_status: PaymentStatus = Field(
        description="succeeded confirms the enrollment; failed / refunded deactivate it.",
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    instructor_id: UUID
    title: str
    slug: str
    status: CourseStatus
    is_free: bool
    price: Decimal
    currency: str
    enrollment_count: int
    rating_average: Decimal
    rating_count: int
    published_at: datetime | None
    created_at: datetime


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enrollment_id: UUID
    course_id: UUID
    profile_id: UUID
    amount_paid: Decimal
    currency: str
    payment_method: PaymentMethod
    progress_percentage: int
    is_active: bool
    enrolled_at: datetime
    started_at: datetime | None
    completed_at: datetime | None
    last_accessed_at: datetime | None


class EnrollmentStatusResponse(BaseModel):
    enrolled: bool
    enrollment: EnrollmentResponse | None = None


class LessonProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    progress_id: UUID
    enrollment_id: UUID
    lesson_id: UUID
    status: LessonProgressStatus
    progress_percentage: int
    started_at: datetime | None
    completed_at: datetime | None


class CompletionResponse(BaseModel):
    progress: LessonProgressResponse
    enrollment: EnrollmentResponse
    next_lesson_id: UUID | None = Field(
        default=None, description="Lesson to navigate to next; null after the last lesson."
    )


class OutlineLesson(BaseModel):
    lesson_id: UUID
    title: str
    content_type: ContentType
    sort_order: int
    is_preview: bool
    estimated_duration_minutes: int | None
    can_access: bool
    status: LessonProgressStatus


class OutlineModule(BaseModel):
    name: str
    progress_percentage: int
    lessons: list[OutlineLesson]


class CourseOutlineResponse(BaseModel):
    """Sidebar view of a course for one learner."""

    course_id: UUID
    title: str
    status: CourseStatus
    enrollment: EnrollmentResponse | None = None
    progress_percentage: int
    resume_lesson_id: UUID | None = None
    modules: list[OutlineModule]


class CourseStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enrollment_count: int
    average_rating: float
    review_count: int
    completion_count: int
    completion_rate: float
    average_progress: float


class InstructorStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_courses: int
    published_courses: int
    draft_courses: int
    total_enrollments: int
    total_revenue: Decimal
