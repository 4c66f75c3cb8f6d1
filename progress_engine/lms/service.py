"""Progress API business logic.

Resolves the ids that arrive over HTTP into records, enforces sequential
access, and delegates to the engine components. All functions take the
repository explicitly; none of them commits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from progress_engine import courses
from progress_engine.enrollment.manager import EnrollmentManager
from progress_engine.exceptions import (
    CourseNotFoundError,
    EnrollmentNotFoundError,
    LessonGatedError,
    LessonNotFoundError,
    NotCourseOwnerError,
    NotEnrolledError,
)
from progress_engine.lessons.graph import can_access, index_of, order_lessons
from progress_engine.models.enums import PaymentStatus
from progress_engine.progress.tracker import CompletionResult, ProgressTracker
from progress_engine.repository.base import EnrollmentRepository
from progress_engine.schemas import (
    CourseRecord,
    EnrollmentRecord,
    LessonProgressRecord,
    LessonRecord,
)
from progress_engine.stats import service as stats_service
from progress_engine.stats.aggregates import CourseStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CourseView:
    """Everything needed to render a course for one learner."""

    course: CourseRecord
    enrollment: EnrollmentRecord | None
    lessons: list[LessonRecord]
    progress: dict[UUID, LessonProgressRecord]


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_course(repo: EnrollmentRepository, course_id: UUID) -> CourseRecord:
    course = await repo.get_course(course_id)
    if course is None:
        raise CourseNotFoundError(str(course_id))
    return course


async def get_lesson(repo: EnrollmentRepository, lesson_id: UUID) -> LessonRecord:
    lesson = await repo.get_lesson(lesson_id)
    if lesson is None:
        raise LessonNotFoundError(str(lesson_id))
    return lesson


async def _require_enrollment(
    repo: EnrollmentRepository, course_id: UUID, profile_id: UUID
) -> EnrollmentRecord:
    enrollment = await repo.get_enrollment(course_id, profile_id)
    if enrollment is None:
        raise NotEnrolledError()
    return enrollment


async def _require_owner(
    repo: EnrollmentRepository, course_id: UUID, profile_id: UUID
) -> CourseRecord:
    course = await get_course(repo, course_id)
    if course.instructor_id != profile_id:
        raise NotCourseOwnerError()
    return course


async def load_course_view(
    repo: EnrollmentRepository, course_id: UUID, profile_id: UUID | None
) -> CourseView:
    course = await get_course(repo, course_id)
    lessons = order_lessons(await repo.get_lessons(course_id))
    enrollment = None
    progress: dict[UUID, LessonProgressRecord] = {}
    if profile_id is not None:
        enrollment = await repo.get_enrollment(course_id, profile_id)
        if enrollment is not None:
            records = await repo.get_lesson_progress(enrollment.enrollment_id)
            progress = {p.lesson_id: p for p in records}
    return CourseView(course=course, enrollment=enrollment, lessons=lessons, progress=progress)


# ---------------------------------------------------------------------------
# Enrollment
# ---------------------------------------------------------------------------


async def enroll(
    repo: EnrollmentRepository,
    profile_id: UUID,
    course_id: UUID,
    *,
    default_currency: str = "USD",
) -> EnrollmentRecord:
    course = await get_course(repo, course_id)
    manager = EnrollmentManager(repo, default_currency=default_currency)
    return await manager.enroll(profile_id, course)


async def get_enrollment_status(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> EnrollmentRecord | None:
    course = await get_course(repo, course_id)
    return await EnrollmentManager(repo).status(profile_id, course)


async def drop_enrollment(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> EnrollmentRecord:
    enrollment = await _require_enrollment(repo, course_id, profile_id)
    return await EnrollmentManager(repo).drop(enrollment)


async def reconcile_payment(
    repo: EnrollmentRepository, enrollment_id: UUID, payment_status: PaymentStatus
) -> EnrollmentRecord:
    enrollment = await repo.get_enrollment_by_id(enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(str(enrollment_id))
    return await EnrollmentManager(repo).reconcile_payment(enrollment, payment_status)


# ---------------------------------------------------------------------------
# Lesson progress
# ---------------------------------------------------------------------------


async def _gate(
    repo: EnrollmentRepository, profile_id: UUID, lesson_id: UUID
) -> tuple[EnrollmentRecord, LessonRecord]:
    """Return the learner's enrollment and the lesson, or raise if the lesson is locked."""
    lesson = await get_lesson(repo, lesson_id)
    view = await load_course_view(repo, lesson.course_id, profile_id)
    if view.enrollment is None:
        raise NotEnrolledError()
    index = index_of(view.lessons, lesson.lesson_id)
    if index is None or not can_access(
        lesson, index, view.lessons, view.enrollment, view.progress
    ):
        logger.info("Profile %s blocked from lesson %s", profile_id, lesson_id)
        raise LessonGatedError(str(lesson_id))
    return view.enrollment, lesson


async def open_lesson(
    repo: EnrollmentRepository, profile_id: UUID, lesson_id: UUID
) -> LessonProgressRecord:
    enrollment, lesson = await _gate(repo, profile_id, lesson_id)
    return await ProgressTracker(repo).open_lesson(enrollment, lesson)


async def complete_lesson(
    repo: EnrollmentRepository, profile_id: UUID, lesson_id: UUID
) -> CompletionResult:
    enrollment, lesson = await _gate(repo, profile_id, lesson_id)
    return await ProgressTracker(repo).complete_lesson(enrollment, lesson)


# ---------------------------------------------------------------------------
# Course lifecycle
# ---------------------------------------------------------------------------


async def publish_course(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseRecord:
    await _require_owner(repo, course_id, profile_id)
    return await courses.publish_course(repo, course_id)


async def revert_to_draft(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseRecord:
    await _require_owner(repo, course_id, profile_id)
    return await courses.revert_to_draft(repo, course_id)


async def archive_course(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseRecord:
    await _require_owner(repo, course_id, profile_id)
    return await courses.archive_course(repo, course_id)


# ---------------------------------------------------------------------------
# Course stats
# ---------------------------------------------------------------------------


async def get_course_stats(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseStats:
    await _require_owner(repo, course_id, profile_id)
    return await stats_service.get_course_stats(repo, course_id)


async def refresh_course_stats(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseRecord:
    await _require_owner(repo, course_id, profile_id)
    return await stats_service.refresh_course_stats(repo, course_id)
