"""Course lifecycle: draft -> published -> archived.

Publishing needs at least one lesson; a published course can go back to
draft; draft and published courses can be archived. Deletion is handled by
the platform backend and is not modelled here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID

from progress_engine.exceptions import CourseNotFoundError, InvalidStatusTransitionError
from progress_engine.models.enums import CourseStatus
from progress_engine.repository.base import EnrollmentRepository
from progress_engine.schemas import CourseRecord

logger = logging.getLogger(__name__)

_ALLOWED: dict[CourseStatus, frozenset[CourseStatus]] = {
    CourseStatus.DRAFT: frozenset({CourseStatus.PUBLISHED, CourseStatus.ARCHIVED}),
    CourseStatus.PUBLISHED: frozenset({CourseStatus.DRAFT, CourseStatus.ARCHIVED}),
    CourseStatus.ARCHIVED: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _get_course(repository: EnrollmentRepository, course_id: UUID) -> CourseRecord:
    course = await repository.get_course(course_id)
    if course is None:
        raise CourseNotFoundError(str(course_id))
    return course


def _check_transition(course: CourseRecord, target: CourseStatus) -> None:
    if target not in _ALLOWED[course.status]:
        raise InvalidStatusTransitionError(course.status.value, target.value)


async def publish_course(
    repository: EnrollmentRepository,
    course_id: UUID,
    *,
    clock: Callable[[], datetime] = _utcnow,
) -> CourseRecord:
    course = await _get_course(repository, course_id)
    _check_transition(course, CourseStatus.PUBLISHED)
    if not await repository.get_lessons(course_id):
        raise InvalidStatusTransitionError(
            course.status.value, CourseStatus.PUBLISHED.value, "course has no lessons"
        )
    fields: dict = {"status": CourseStatus.PUBLISHED}
    if course.published_at is None:
        fields["published_at"] = clock()
    updated = await repository.update_course(course_id, fields)
    logger.info("Course %s published", course_id)
    return updated


async def revert_to_draft(repository: EnrollmentRepository, course_id: UUID) -> CourseRecord:
    course = await _get_course(repository, course_id)
    _check_transition(course, CourseStatus.DRAFT)
    updated = await repository.update_course(course_id, {"status": CourseStatus.DRAFT})
    logger.info("Course %s reverted to draft", course_id)
    return updated


async def archive_course(repository: EnrollmentRepository, course_id: UUID) -> CourseRecord:
    course = await _get_course(repository, course_id)
    _check_transition(course, CourseStatus.ARCHIVED)
    updated = await repository.update_course(course_id, {"status": CourseStatus.ARCHIVED})
    logger.info("Course %s archived", course_id)
    return updated
