"""Progress tracker — lesson start/completion and enrollment completion.

Per lesson: NotStarted -> InProgress -> Completed (terminal).

The tracker reads the current state before every write, so opening an
already-open lesson or completing an already-completed lesson never
overwrites what was recorded first. Repository failures propagate
unchanged; nothing is retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from progress_engine.exceptions import EnrollmentNotFoundError, NotEnrolledError, ValidationError
from progress_engine.lessons.graph import (
    group_by_module,
    is_lesson_completed,
    next_lesson,
    order_lessons,
)
from progress_engine.repository.base import EnrollmentRepository
from progress_engine.schemas import (
    Completed,
    EnrollmentRecord,
    InProgress,
    LessonProgressRecord,
    LessonRecord,
    state_to_columns,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    value = Decimal(100 * part) / Decimal(whole)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def course_percentage(
    lessons: Sequence[LessonRecord],
    progress_by_lesson_id: Mapping[UUID, LessonProgressRecord],
) -> int:
    """Share of the course's lessons that are completed, 0-100."""
    completed = sum(1 for l in lessons if is_lesson_completed(l.lesson_id, progress_by_lesson_id))
    return _percent(completed, len(lessons))


def module_percentages(
    lessons: Sequence[LessonRecord],
    progress_by_lesson_id: Mapping[UUID, LessonProgressRecord],
) -> dict[str, int]:
    return {
        name: course_percentage(module_lessons, progress_by_lesson_id)
        for name, module_lessons in group_by_module(order_lessons(lessons)).items()
    }


@dataclass(frozen=True)
class CompletionResult:
    progress: LessonProgressRecord
    enrollment: EnrollmentRecord
    next_lesson: LessonRecord | None


class ProgressTracker:
    def __init__(
        self,
        repository: EnrollmentRepository,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._clock = clock

    async def _current_enrollment(
        self, enrollment: EnrollmentRecord, lesson: LessonRecord
    ) -> EnrollmentRecord:
        # The caller's copy may be stale; decisions are taken on the stored row.
        current = await self._repository.get_enrollment_by_id(enrollment.enrollment_id)
        if current is None:
            raise EnrollmentNotFoundError(str(enrollment.enrollment_id))
        if not current.is_active:
            raise NotEnrolledError()
        if lesson.course_id != current.course_id:
            raise ValidationError(
                f"Lesson {lesson.lesson_id} does not belong to course {current.course_id}"
            )
        return current

    async def _progress_map(self, enrollment_id: UUID) -> dict[UUID, LessonProgressRecord]:
        records = await self._repository.get_lesson_progress(enrollment_id)
        return {p.lesson_id: p for p in records}

    async def open_lesson(
        self, enrollment: EnrollmentRecord, lesson: LessonRecord
    ) -> LessonProgressRecord:
        """Start tracking a lesson; a no-op if it is already tracked."""
        enrollment = await self._current_enrollment(enrollment, lesson)

        existing = (await self._progress_map(enrollment.enrollment_id)).get(lesson.lesson_id)
        if existing is not None:
            return existing

        now = self._clock()
        fields: dict[str, Any] = state_to_columns(InProgress(started_at=now))
        fields["progress_percentage"] = 0
        progress = await self._repository.upsert_lesson_progress(
            enrollment.enrollment_id, lesson.lesson_id, fields
        )

        enrollment_fields: dict[str, Any] = {"last_accessed_at": now}
        if enrollment.started_at is None:
            enrollment_fields["started_at"] = now
        await self._repository.update_enrollment(enrollment.enrollment_id, enrollment_fields)

        logger.info(
            "Lesson %s started under enrollment %s", lesson.lesson_id, enrollment.enrollment_id
        )
        return progress

    async def complete_lesson(
        self, enrollment: EnrollmentRecord, lesson: LessonRecord
    ) -> CompletionResult:
        """Mark a lesson completed and roll the result up to the enrollment.

        Completing twice keeps the first ``completed_at``. The enrollment's
        ``completed_at`` is set once every lesson of the course is completed
        and is never cleared afterwards.
        """
        enrollment = await self._current_enrollment(enrollment, lesson)

        lessons = order_lessons(await self._repository.get_lessons(enrollment.course_id))
        progress_map = await self._progress_map(enrollment.enrollment_id)
        now = self._clock()

        current = progress_map.get(lesson.lesson_id)
        if current is not None and current.is_completed:
            progress = current
        else:
            started_at = current.started_at if current is not None else None
            fields: dict[str, Any] = state_to_columns(
                Completed(started_at=started_at or now, completed_at=now)
            )
            fields["progress_percentage"] = 100
            progress = await self._repository.upsert_lesson_progress(
                enrollment.enrollment_id, lesson.lesson_id, fields
            )
            logger.info(
                "Lesson %s completed under enrollment %s",
                lesson.lesson_id,
                enrollment.enrollment_id,
            )
        progress_map[lesson.lesson_id] = progress

        percentage = course_percentage(lessons, progress_map)
        enrollment_fields: dict[str, Any] = {
            # Progress only moves forward; lessons added later do not undo it
            "progress_percentage": max(percentage, enrollment.progress_percentage),
            "last_accessed_at": now,
        }
        if enrollment.started_at is None:
            enrollment_fields["started_at"] = progress.started_at or now
        all_done = bool(lessons) and all(
            is_lesson_completed(l.lesson_id, progress_map) for l in lessons
        )
        if all_done and enrollment.completed_at is None:
            enrollment_fields["completed_at"] = now
            logger.info("Enrollment %s completed", enrollment.enrollment_id)

        updated = await self._repository.update_enrollment(
            enrollment.enrollment_id, enrollment_fields
        )
        return CompletionResult(
            progress=progress,
            enrollment=updated,
            next_lesson=next_lesson(lessons, lesson),
        )

    @staticmethod
    def advance(lessons: Sequence[LessonRecord], current: LessonRecord) -> LessonRecord | None:
        """Lesson to navigate to after ``current``; ``None`` when it is the last."""
        return next_lesson(order_lessons(lessons), current)
