"""Course aggregate statistics.

Pure reductions over already-fetched records: no I/O, deterministic for a
given input. Rates and averages are rounded half-up to one decimal and an
empty input yields 0 rather than an error.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from progress_engine.models.enums import CourseStatus
from progress_engine.schemas import CourseRecord, EnrollmentRecord, ReviewRecord

_ONE_DECIMAL = Decimal("0.1")


def _round1(value: Decimal) -> float:
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def _mean(values: Sequence[Decimal]) -> float:
    if not values:
        return 0.0
    return _round1(sum(values, Decimal(0)) / len(values))


def average_rating(reviews: Iterable[ReviewRecord]) -> float:
    """Mean rating of the approved reviews."""
    return _mean([Decimal(r.rating) for r in reviews if r.is_approved])


def completion_rate(enrollments: Sequence[EnrollmentRecord]) -> float:
    """Percentage of enrollments with a ``completed_at``."""
    if not enrollments:
        return 0.0
    completed = sum(1 for e in enrollments if e.completed_at is not None)
    return _round1(Decimal(100 * completed) / len(enrollments))


def average_progress(enrollments: Sequence[EnrollmentRecord]) -> float:
    return _mean([Decimal(e.progress_percentage or 0) for e in enrollments])


def instructor_revenue(enrollments: Iterable[EnrollmentRecord]) -> Decimal:
    """Sum of ``amount_paid``, counting each enrollment once."""
    seen: dict[UUID, Decimal] = {}
    for enrollment in enrollments:
        seen.setdefault(enrollment.enrollment_id, enrollment.amount_paid or Decimal(0))
    return sum(seen.values(), Decimal(0))


@dataclass(frozen=True)
class CourseStats:
    enrollment_count: int
    average_rating: float
    review_count: int
    completion_count: int
    completion_rate: float
    average_progress: float


@dataclass(frozen=True)
class InstructorStats:
    total_courses: int
    published_courses: int
    draft_courses: int
    total_enrollments: int
    total_revenue: Decimal


def course_stats(
    enrollments: Sequence[EnrollmentRecord], reviews: Sequence[ReviewRecord]
) -> CourseStats:
    approved = [r for r in reviews if r.is_approved]
    return CourseStats(
        enrollment_count=len(enrollments),
        average_rating=average_rating(approved),
        review_count=len(approved),
        completion_count=sum(1 for e in enrollments if e.completed_at is not None),
        completion_rate=completion_rate(enrollments),
        average_progress=average_progress(enrollments),
    )


def instructor_stats(
    courses: Sequence[CourseRecord], enrollments: Sequence[EnrollmentRecord]
) -> InstructorStats:
    unique = {e.enrollment_id: e for e in enrollments}
    return InstructorStats(
        total_courses=len(courses),
        published_courses=sum(1 for c in courses if c.status == CourseStatus.PUBLISHED),
        draft_courses=sum(1 for c in courses if c.status == CourseStatus.DRAFT),
        total_enrollments=len(unique),
        total_revenue=instructor_revenue(unique.values()),
    )
