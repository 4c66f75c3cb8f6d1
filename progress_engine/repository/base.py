"""Persistence interface consumed by the domain layer.

Lookups return ``None`` when nothing matches. Writes raise
:class:`~progress_engine.exceptions.ConflictError` on uniqueness violations,
:class:`~progress_engine.exceptions.ValidationError` on malformed input and
:class:`~progress_engine.exceptions.PersistenceError` on backend failures.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol
from uuid import UUID

from progress_engine.schemas import (
    CourseRecord,
    EnrollmentRecord,
    LessonProgressRecord,
    LessonRecord,
    NewEnrollment,
    ReviewRecord,
)


class EnrollmentRepository(Protocol):
    # Courses and lessons

    async def get_course(self, course_id: UUID) -> CourseRecord | None: ...

    async def update_course(self, course_id: UUID, fields: Mapping[str, Any]) -> CourseRecord: ...

    async def list_instructor_courses(self, instructor_id: UUID) -> list[CourseRecord]: ...

    async def get_lesson(self, lesson_id: UUID) -> LessonRecord | None: ...

    async def get_lessons(self, course_id: UUID) -> list[LessonRecord]: ...

    # Enrollments

    async def get_enrollment(
        self, course_id: UUID, profile_id: UUID
    ) -> EnrollmentRecord | None:
        """Return the active enrollment for (course, profile), if any."""
        ...

    async def get_enrollment_by_id(self, enrollment_id: UUID) -> EnrollmentRecord | None: ...

    async def create_enrollment(self, data: NewEnrollment) -> EnrollmentRecord: ...

    async def update_enrollment(
        self, enrollment_id: UUID, fields: Mapping[str, Any]
    ) -> EnrollmentRecord: ...

    async def list_course_enrollments(self, course_id: UUID) -> list[EnrollmentRecord]:
        """Active enrollments of one course."""
        ...

    async def list_instructor_enrollments(self, instructor_id: UUID) -> list[EnrollmentRecord]:
        """Active enrollments across every course of one instructor."""
        ...

    # Lesson progress

    async def get_lesson_progress(self, enrollment_id: UUID) -> list[LessonProgressRecord]: ...

    async def upsert_lesson_progress(
        self,
        enrollment_id: UUID,
        lesson_id: UUID,
        fields: Mapping[str, Any],
    ) -> LessonProgressRecord: ...

    # Reviews

    async def get_reviews(
        self, course_id: UUID, *, approved_only: bool = True
    ) -> list[ReviewRecord]: ...
