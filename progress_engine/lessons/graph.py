"""Lesson graph — document order, module grouping and sequential access.

Pure functions over already-fetched records, no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from uuid import UUID

from progress_engine.schemas import EnrollmentRecord, LessonProgressRecord, LessonRecord

DEFAULT_MODULE_NAME = "General"


def _sort_key(lesson: LessonRecord) -> tuple:
    # sort_order, then creation order, then id: no two lessons ever tie
    return (lesson.sort_order, lesson.created_at, str(lesson.lesson_id))


def order_lessons(lessons: Iterable[LessonRecord]) -> list[LessonRecord]:
    """Return the lessons in document order."""
    return sorted(lessons, key=_sort_key)


def module_key(module_name: str | None) -> str:
    """Grouping key for a free-text module name.

    Case-folded with whitespace collapsed, so ``"Week 1"`` and ``" week  1"``
    land in the same module. Blank names map to the default module.
    """
    if module_name is None:
        return DEFAULT_MODULE_NAME.casefold()
    collapsed = " ".join(module_name.split())
    return (collapsed or DEFAULT_MODULE_NAME).casefold()


def group_by_module(ordered: Sequence[LessonRecord]) -> dict[str, list[LessonRecord]]:
    """Group ordered lessons by module, preserving global order inside each group.

    Modules appear in the order of their first lesson. The display name is
    the first spelling seen for the module.
    """
    names: dict[str, str] = {}
    groups: dict[str, list[LessonRecord]] = {}
    for lesson in ordered:
        key = module_key(lesson.module_name)
        if key not in names:
            names[key] = " ".join((lesson.module_name or "").split()) or DEFAULT_MODULE_NAME
            groups[names[key]] = []
        groups[names[key]].append(lesson)
    return groups


def index_of(ordered: Sequence[LessonRecord], lesson_id: UUID) -> int | None:
    for index, lesson in enumerate(ordered):
        if lesson.lesson_id == lesson_id:
            return index
    return None


def is_lesson_completed(
    lesson_id: UUID, progress_by_lesson_id: Mapping[UUID, LessonProgressRecord]
) -> bool:
    progress = progress_by_lesson_id.get(lesson_id)
    return progress is not None and progress.completed_at is not None


def can_access(
    lesson: LessonRecord,
    index: int,
    ordered: Sequence[LessonRecord],
    enrollment: EnrollmentRecord | None,
    progress_by_lesson_id: Mapping[UUID, LessonProgressRecord],
) -> bool:
    """Can the holder of ``enrollment`` open ``lesson`` (at ``index`` in ``ordered``)?

    Preview lessons are always open. Otherwise an active enrollment is
    required, and every lesson but the first needs its predecessor completed.
    """
    if lesson.is_preview:
        return True
    if enrollment is None or not enrollment.is_active:
        return False
    if index == 0:
        return True
    previous = ordered[index - 1]
    return is_lesson_completed(previous.lesson_id, progress_by_lesson_id)


def next_lesson(ordered: Sequence[LessonRecord], current: LessonRecord) -> LessonRecord | None:
    """The lesson after ``current`` in document order, or ``None`` at the end."""
    index = index_of(ordered, current.lesson_id)
    if index is None or index + 1 >= len(ordered):
        return None
    return ordered[index + 1]


def resume_lesson(
    ordered: Sequence[LessonRecord],
    progress_by_lesson_id: Mapping[UUID, LessonProgressRecord],
) -> LessonRecord | None:
    """First lesson not yet completed; the first lesson once all are done."""
    if not ordered:
        return None
    for lesson in ordered:
        if not is_lesson_completed(lesson.lesson_id, progress_by_lesson_id):
            return lesson
    return ordered[0]
