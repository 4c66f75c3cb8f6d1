"""In-memory EnrollmentRepository used by the domain tests."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from progress_engine.exceptions import (
    ConflictError,
    CourseNotFoundError,
    EnrollmentNotFoundError,
    PersistenceError,
)
from progress_engine.models.enums import CourseStatus
from progress_engine.schemas import (
    CourseRecord,
    EnrollmentRecord,
    LessonProgressRecord,
    LessonRecord,
    NewEnrollment,
    ReviewRecord,
    state_from_columns,
    state_to_columns,
)

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class Clock:
    """Deterministic clock that moves one minute per call."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


def make_course(**overrides: Any) -> CourseRecord:
    data: dict[str, Any] = {
        "course_id": uuid.uuid4(),
        "network_id": uuid.uuid4(),
        "instructor_id": uuid.uuid4(),
        "title": "Course",
        "slug": f"course-{uuid.uuid4().hex[:8]}",
        "status": CourseStatus.PUBLISHED,
        "created_at": T0,
    }
    data.update(overrides)
    return CourseRecord(**data)


def make_lesson(course_id: UUID, sort_order: int, **overrides: Any) -> LessonRecord:
    data: dict[str, Any] = {
        "lesson_id": uuid.uuid4(),
        "course_id": course_id,
        "title": f"Lesson {sort_order}",
        "sort_order": sort_order,
        "created_at": T0,
    }
    data.update(overrides)
    return LessonRecord(**data)


class InMemoryRepository:
    """Dict-backed repository honouring the same contract as the SQL one.

    ``fail_on`` names repository methods that raise ``PersistenceError``
    before touching any state.
    """

    def __init__(self) -> None:
        self.courses: dict[UUID, CourseRecord] = {}
        self.lessons: dict[UUID, LessonRecord] = {}
        self.enrollments: dict[UUID, EnrollmentRecord] = {}
        self.progress: dict[tuple[UUID, UUID], LessonProgressRecord] = {}
        self.reviews: list[ReviewRecord] = []
        self.fail_on: set[str] = set()
        self.calls: list[str] = []

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise PersistenceError(f"{operation} failed")

    # Seeding helpers

    def add_course(self, course: CourseRecord, lessons: Iterable[LessonRecord] = ()) -> CourseRecord:
        self.courses[course.course_id] = course
        for lesson in lessons:
            self.lessons[lesson.lesson_id] = lesson
        return course

    def add_review(self, course_id: UUID, rating: int, *, approved: bool = True) -> ReviewRecord:
        review = ReviewRecord(
            review_id=uuid.uuid4(),
            course_id=course_id,
            reviewer_id=uuid.uuid4(),
            rating=rating,
            is_approved=approved,
            created_at=T0,
        )
        self.reviews.append(review)
        return review

    # Courses and lessons

    async def get_course(self, course_id: UUID) -> CourseRecord | None:
        self._enter("get_course")
        return self.courses.get(course_id)

    async def update_course(self, course_id: UUID, fields: Mapping[str, Any]) -> CourseRecord:
        self._enter("update_course")
        course = self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError(str(course_id))
        updated = course.model_copy(update=dict(fields))
        self.courses[course_id] = updated
        return updated

    async def list_instructor_courses(self, instructor_id: UUID) -> list[CourseRecord]:
        self._enter("list_instructor_courses")
        return [c for c in self.courses.values() if c.instructor_id == instructor_id]

    async def get_lesson(self, lesson_id: UUID) -> LessonRecord | None:
        self._enter("get_lesson")
        return self.lessons.get(lesson_id)

    async def get_lessons(self, course_id: UUID) -> list[LessonRecord]:
        self._enter("get_lessons")
        return [l for l in self.lessons.values() if l.course_id == course_id]

    # Enrollments

    async def get_enrollment(self, course_id: UUID, profile_id: UUID) -> EnrollmentRecord | None:
        self._enter("get_enrollment")
        for enrollment in self.enrollments.values():
            if (
                enrollment.course_id == course_id
                and enrollment.profile_id == profile_id
                and enrollment.is_active
            ):
                return enrollment
        return None

    async def get_enrollment_by_id(self, enrollment_id: UUID) -> EnrollmentRecord | None:
        self._enter("get_enrollment_by_id")
        return self.enrollments.get(enrollment_id)

    async def create_enrollment(self, data: NewEnrollment) -> EnrollmentRecord:
        self._enter("create_enrollment")
        for enrollment in self.enrollments.values():
            if (
                enrollment.course_id == data.course_id
                and enrollment.profile_id == data.profile_id
                and enrollment.is_active
            ):
                raise ConflictError("create_enrollment: conflicting row exists")
        record = EnrollmentRecord(enrollment_id=uuid.uuid4(), **data.model_dump())
        self.enrollments[record.enrollment_id] = record
        return record

    async def update_enrollment(
        self, enrollment_id: UUID, fields: Mapping[str, Any]
    ) -> EnrollmentRecord:
        self._enter("update_enrollment")
        enrollment = self.enrollments.get(enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError(str(enrollment_id))
        updated = enrollment.model_copy(update=dict(fields))
        self.enrollments[enrollment_id] = updated
        return updated

    async def list_course_enrollments(self, course_id: UUID) -> list[EnrollmentRecord]:
        self._enter("list_course_enrollments")
        return [e for e in self.enrollments.values() if e.course_id == course_id and e.is_active]

    async def list_instructor_enrollments(self, instructor_id: UUID) -> list[EnrollmentRecord]:
        self._enter("list_instructor_enrollments")
        owned = {c.course_id for c in self.courses.values() if c.instructor_id == instructor_id}
        return [e for e in self.enrollments.values() if e.course_id in owned and e.is_active]

    # Lesson progress

    async def get_lesson_progress(self, enrollment_id: UUID) -> list[LessonProgressRecord]:
        self._enter("get_lesson_progress")
        return [p for (eid, _), p in self.progress.items() if eid == enrollment_id]

    async def upsert_lesson_progress(
        self, enrollment_id: UUID, lesson_id: UUID, fields: Mapping[str, Any]
    ) -> LessonProgressRecord:
        self._enter("upsert_lesson_progress")
        current = self.progress.get((enrollment_id, lesson_id))
        columns: dict[str, Any] = {"progress_percentage": 0}
        if current is not None:
            columns = {"progress_percentage": current.progress_percentage}
            columns.update(state_to_columns(current.state))
        columns.update(fields)
        record = LessonProgressRecord(
            progress_id=current.progress_id if current else uuid.uuid4(),
            enrollment_id=enrollment_id,
            lesson_id=lesson_id,
            progress_percentage=columns["progress_percentage"],
            state=state_from_columns(
                columns["status"], columns.get("started_at"), columns.get("completed_at")
            ),
        )
        self.progress[(enrollment_id, lesson_id)] = record
        return record

    # Reviews

    async def get_reviews(self, course_id: UUID, *, approved_only: bool = True) -> list[ReviewRecord]:
        self._enter("get_reviews")
        return [
            r for r in self.reviews
            if r.course_id == course_id and (r.is_approved or not approved_only)
        ]


def paid_course(price: str = "20", currency: str = "USD") -> CourseRecord:
    return make_course(is_free=False, price=Decimal(price), currency=currency)
