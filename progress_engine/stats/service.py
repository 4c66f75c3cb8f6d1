"""Read-through refresh of the aggregate columns cached on a course."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from progress_engine.exceptions import CourseNotFoundError
from progress_engine.repository.base import EnrollmentRepository
from progress_engine.schemas import CourseRecord
from progress_engine.stats.aggregates import (
    CourseStats,
    InstructorStats,
    course_stats,
    instructor_stats,
)

logger = logging.getLogger(__name__)


async def get_course_stats(repository: EnrollmentRepository, course_id: UUID) -> CourseStats:
    if await repository.get_course(course_id) is None:
        raise CourseNotFoundError(str(course_id))
    enrollments = await repository.list_course_enrollments(course_id)
    reviews = await repository.get_reviews(course_id, approved_only=True)
    return course_stats(enrollments, reviews)


async def get_instructor_stats(
    repository: EnrollmentRepository, instructor_id: UUID
) -> InstructorStats:
    courses = await repository.list_instructor_courses(instructor_id)
    enrollments = await repository.list_instructor_enrollments(instructor_id)
    return instructor_stats(courses, enrollments)


async def refresh_course_stats(repository: EnrollmentRepository, course_id: UUID) -> CourseRecord:
    """Recompute ``enrollment_count``, ``rating_average`` and ``rating_count``.

    These columns are a cache of what the enrollment and review rows say;
    this is the only code path that writes them.
    """
    stats = await get_course_stats(repository, course_id)
    course = await repository.update_course(
        course_id,
        {
            "enrollment_count": stats.enrollment_count,
            "rating_average": Decimal(str(stats.average_rating)),
            "rating_count": stats.review_count,
        },
    )
    logger.info(
        "Course %s stats refreshed: %d enrollments, rating %.1f (%d reviews)",
        course_id,
        stats.enrollment_count,
        stats.average_rating,
        stats.review_count,
    )
    return course
