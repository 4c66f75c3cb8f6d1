"""SQLAlchemy implementation of :class:`EnrollmentRepository`.

Runs inside the caller's ``AsyncSession``: it flushes but never commits,
so one request is one unit of work (see ``progress_engine.database.get_db``).
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from progress_engine.exceptions import (
    ConflictError,
    CourseNotFoundError,
    EnrollmentNotFoundError,
    PersistenceError,
    ValidationError,
)
from progress_engine.models.course import Course
from progress_engine.models.enrollment import Enrollment
from progress_engine.models.lesson import Lesson
from progress_engine.models.lesson_progress import LessonProgress
from progress_engine.models.review import Review
from progress_engine.schemas import (
    CourseRecord,
    EnrollmentRecord,
    LessonProgressRecord,
    LessonRecord,
    NewEnrollment,
    ReviewRecord,
    state_from_columns,
)

logger = logging.getLogger(__name__)

_COURSE_FIELDS = frozenset(
    {"status", "published_at", "enrollment_count", "rating_average", "rating_count"}
)
_ENROLLMENT_FIELDS = frozenset(
    {
        "amount_paid",
        "payment_method",
        "progress_percentage",
        "is_active",
        "started_at",
        "completed_at",
        "last_accessed_at",
    }
)
_PROGRESS_FIELDS = frozenset({"status", "progress_percentage", "started_at", "completed_at"})


def _check_fields(fields: Mapping[str, Any], allowed: frozenset[str], entity: str) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Cannot update {entity} fields: {', '.join(sorted(unknown))}")


def _progress_record(row: LessonProgress) -> LessonProgressRecord:
    return LessonProgressRecord(
        progress_id=row.progress_id,
        enrollment_id=row.enrollment_id,
        lesson_id=row.lesson_id,
        progress_percentage=row.progress_percentage,
        state=state_from_columns(row.status, row.started_at, row.completed_at),
    )


class SqlAlchemyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @asynccontextmanager
    async def _translate(self, operation: str) -> AsyncIterator[None]:
        """Map SQLAlchemy failures onto the engine's error taxonomy."""
        try:
            yield
        except IntegrityError as exc:
            logger.warning("%s rejected by a uniqueness constraint: %s", operation, exc.orig)
            raise ConflictError(f"{operation}: conflicting row exists") from exc
        except SQLAlchemyError as exc:
            logger.warning("%s failed: %s", operation, exc)
            raise PersistenceError(f"{operation} failed") from exc

    # ------------------------------------------------------------------
    # Courses and lessons
    # ------------------------------------------------------------------

    async def get_course(self, course_id: UUID) -> CourseRecord | None:
        async with self._translate("get_course"):
            row = await self._session.get(Course, course_id)
        return CourseRecord.model_validate(row) if row is not None else None

    async def update_course(self, course_id: UUID, fields: Mapping[str, Any]) -> CourseRecord:
        _check_fields(fields, _COURSE_FIELDS, "course")
        async with self._translate("update_course"):
            row = await self._session.get(Course, course_id)
            if row is None:
                raise CourseNotFoundError(str(course_id))
            for key, value in fields.items():
                setattr(row, key, value)
            await self._session.flush()
            await self._session.refresh(row)
        return CourseRecord.model_validate(row)

    async def list_instructor_courses(self, instructor_id: UUID) -> list[CourseRecord]:
        stmt = (
            select(Course)
            .where(Course.instructor_id == instructor_id)
            .order_by(Course.created_at.desc())
        )
        async with self._translate("list_instructor_courses"):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())
        return [CourseRecord.model_validate(r) for r in rows]

    async def get_lesson(self, lesson_id: UUID) -> LessonRecord | None:
        async with self._translate("get_lesson"):
            row = await self._session.get(Lesson, lesson_id)
        return LessonRecord.model_validate(row) if row is not None else None

    async def get_lessons(self, course_id: UUID) -> list[LessonRecord]:
        stmt = (
            select(Lesson)
            .where(Lesson.course_id == course_id)
            .order_by(Lesson.sort_order, Lesson.created_at, Lesson.lesson_id)
        )
        async with self._translate("get_lessons"):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())
        return [LessonRecord.model_validate(r) for r in rows]

    # ------------------------------------------------------------------
    # Enrollments
    # ------------------------------------------------------------------

    async def get_enrollment(
        self, course_id: UUID, profile_id: UUID
    ) -> EnrollmentRecord | None:
        stmt = select(Enrollment).where(
            Enrollment.course_id == course_id,
            Enrollment.profile_id == profile_id,
            Enrollment.is_active.is_(True),
        )
        async with self._translate("get_enrollment"):
            result = await self._session.execute(stmt)
            row = result.scalar_one_or_none()
        return EnrollmentRecord.model_validate(row) if row is not None else None

    async def get_enrollment_by_id(self, enrollment_id: UUID) -> EnrollmentRecord | None:
        async with self._translate("get_enrollment_by_id"):
            row = await self._session.get(Enrollment, enrollment_id)
        return EnrollmentRecord.model_validate(row) if row is not None else None

    async def create_enrollment(self, data: NewEnrollment) -> EnrollmentRecord:
        row = Enrollment(
            course_id=data.course_id,
            profile_id=data.profile_id,
            amount_paid=data.amount_paid,
            currency=data.currency,
            payment_method=data.payment_method,
            progress_percentage=0,
            is_active=True,
            enrolled_at=data.enrolled_at,
        )
        async with self._translate("create_enrollment"):
            # Savepoint: a rejected insert leaves the rest of the transaction intact
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
            await self._session.refresh(row)
        return EnrollmentRecord.model_validate(row)

    async def update_enrollment(
        self, enrollment_id: UUID, fields: Mapping[str, Any]
    ) -> EnrollmentRecord:
        _check_fields(fields, _ENROLLMENT_FIELDS, "enrollment")
        async with self._translate("update_enrollment"):
            row = await self._session.get(Enrollment, enrollment_id)
            if row is None:
                raise EnrollmentNotFoundError(str(enrollment_id))
            for key, value in fields.items():
                setattr(row, key, value)
            await self._session.flush()
            await self._session.refresh(row)
        return EnrollmentRecord.model_validate(row)

    async def list_course_enrollments(self, course_id: UUID) -> list[EnrollmentRecord]:
        stmt = (
            select(Enrollment)
            .where(Enrollment.course_id == course_id, Enrollment.is_active.is_(True))
            .order_by(Enrollment.enrolled_at.desc())
        )
        async with self._translate("list_course_enrollments"):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())
        return [EnrollmentRecord.model_validate(r) for r in rows]

    async def list_instructor_enrollments(self, instructor_id: UUID) -> list[EnrollmentRecord]:
        stmt = (
            select(Enrollment)
            .join(Course, Enrollment.course_id == Course.course_id)
            .where(Course.instructor_id == instructor_id, Enrollment.is_active.is_(True))
            .order_by(Enrollment.enrolled_at.desc())
        )
        async with self._translate("list_instructor_enrollments"):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())
        return [EnrollmentRecord.model_validate(r) for r in rows]

    # ------------------------------------------------------------------
    # Lesson progress
    # ------------------------------------------------------------------

    async def get_lesson_progress(self, enrollment_id: UUID) -> list[LessonProgressRecord]:
        stmt = (
            select(LessonProgress)
            .where(LessonProgress.enrollment_id == enrollment_id)
            .order_by(LessonProgress.progress_id)
        )
        async with self._translate("get_lesson_progress"):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())
        return [_progress_record(r) for r in rows]

    async def upsert_lesson_progress(
        self,
        enrollment_id: UUID,
        lesson_id: UUID,
        fields: Mapping[str, Any],
    ) -> LessonProgressRecord:
        _check_fields(fields, _PROGRESS_FIELDS, "lesson progress")
        stmt = select(LessonProgress).where(
            LessonProgress.enrollment_id == enrollment_id,
            LessonProgress.lesson_id == lesson_id,
        )
        async with self._translate("upsert_lesson_progress"):
            result = await self._session.execute(stmt)
            row = result.scalar_one_or_none()
            async with self._session.begin_nested():
                if row is None:
                    row = LessonProgress(enrollment_id=enrollment_id, lesson_id=lesson_id)
                    self._session.add(row)
                for key, value in fields.items():
                    setattr(row, key, value)
                await self._session.flush()
            await self._session.refresh(row)
        return _progress_record(row)

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def get_reviews(
        self, course_id: UUID, *, approved_only: bool = True
    ) -> list[ReviewRecord]:
        stmt = select(Review).where(Review.course_id == course_id)
        if approved_only:
            stmt = stmt.where(Review.is_approved.is_(True))
        stmt = stmt.order_by(Review.created_at.desc())
        async with self._translate("get_reviews"):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())
        return [ReviewRecord.model_validate(r) for r in rows]
