import uuid

import pytest

from progress_engine.enrollment.manager import EnrollmentManager
from progress_engine.exceptions import NotEnrolledError, PersistenceError, ValidationError
from progress_engine.models.enums import LessonProgressStatus
from progress_engine.progress.tracker import (
    ProgressTracker,
    course_percentage,
    module_percentages,
)
from progress_engine.schemas import Completed, InProgress
from tests.fakes import InMemoryRepository, make_course, make_lesson


async def _enrolled(repo: InMemoryRepository, clock, lessons: int = 3, **lesson_kwargs):
    course = make_course()
    rows = [make_lesson(course.course_id, i, **lesson_kwargs) for i in range(lessons)]
    repo.add_course(course, rows)
    enrollment = await EnrollmentManager(repo, clock=clock).enroll(uuid.uuid4(), course)
    return course, rows, enrollment


@pytest.mark.asyncio
async def test_open_lesson_creates_in_progress_record(fake_repo, clock) -> None:
    _, lessons, enrollment = await _enrolled(fake_repo, clock)
    tracker = ProgressTracker(fake_repo, clock=clock)

    progress = await tracker.open_lesson(enrollment, lessons[0])

    assert progress.status == LessonProgressStatus.IN_PROGRESS
    assert isinstance(progress.state, InProgress)
    assert progress.progress_percentage == 0
    stored = fake_repo.enrollments[enrollment.enrollment_id]
    assert stored.started_at == progress.started_at
    assert stored.last_accessed_at == progress.started_at


@pytest.mark.asyncio
async def test_open_lesson_twice_is_a_noop(fake_repo, clock) -> None:
    _, lessons, enrollment = await _enrolled(fake_repo, clock)
    tracker = ProgressTracker(fake_repo, clock=clock)

    first = await tracker.open_lesson(enrollment, lessons[0])
    second = await tracker.open_lesson(enrollment, lessons[0])

    assert second == first
    assert fake_repo.calls.count("upsert_lesson_progress") == 1


@pytest.mark.asyncio
async def test_three_lesson_course_completes_on_last_lesson(fake_repo, clock) -> None:
    _, lessons, enrollment = await _enrolled(fake_repo, clock)
    tracker = ProgressTracker(fake_repo, clock=clock)

    await tracker.complete_lesson(enrollment, lessons[0])
    result = await tracker.complete_lesson(enrollment, lessons[1])
    assert result.enrollment.progress_percentage == 67
    assert result.enrollment.completed_at is None
    assert result.next_lesson == lessons[2]

    result = await tracker.complete_lesson(enrollment, lessons[2])
    assert result.enrollment.progress_percentage == 100
    assert result.enrollment.completed_at is not None
    assert result.next_lesson is None


@pytest.mark.asyncio
async def test_complete_lesson_is_idempotent(fake_repo, clock) -> None:
    _, lessons, enrollment = await _enrolled(fake_repo, clock)
    tracker = ProgressTracker(fake_repo, clock=clock)

    first = await tracker.complete_lesson(enrollment, lessons[0])
    second = await tracker.complete_lesson(enrollment, lessons[0])

    assert isinstance(first.progress.state, Completed)
    assert second.progress.completed_at == first.progress.completed_at
    assert fake_repo.calls.count("upsert_lesson_progress") == 1


@pytest.mark.asyncio
async def test_complete_keeps_original_start_time(fake_repo, clock) -> None:
    _, lessons, enrollment = await _enrolled(fake_repo, clock)
    tracker = ProgressTracker(fake_repo, clock=clock)

    opened = await tracker.open_lesson(enrollment, lessons[0])
    result = await tracker.complete_lesson(enrollment, lessons[0])

    assert result.progress.started_at == opened.started_at
    assert result.progress.completed_at > opened.started_at


@pytest.mark.asyncio
async def test_enrollment_completion_is_never_cleared(fake_repo, clock) -> None:
    course, lessons, enrollment = await _enrolled(fake_repo, clock, lessons=1)
    tracker = ProgressTracker(fake_repo, clock=clock)
    done = await tracker.complete_lesson(enrollment, lessons[0])
    completed_at = done.enrollment.completed_at

    # A lesson added after completion lowers the live ratio but not the record
    extra = make_lesson(course.course_id, 5)
    fake_repo.lessons[extra.lesson_id] = extra
    again = await tracker.complete_lesson(enrollment, lessons[0])

    assert again.enrollment.completed_at == completed_at
    assert again.enrollment.progress_percentage == 100


@pytest.mark.asyncio
async def test_tracker_reads_stored_enrollment_not_callers_copy(fake_repo, clock) -> None:
    _, lessons, enrollment = await _enrolled(fake_repo, clock)
    await EnrollmentManager(fake_repo, clock=clock).drop(enrollment)
    tracker = ProgressTracker(fake_repo, clock=clock)

    with pytest.raises(NotEnrolledError):
        await tracker.open_lesson(enrollment, lessons[0])


@pytest.mark.asyncio
async def test_lesson_from_another_course_is_rejected(fake_repo, clock) -> None:
    _, _, enrollment = await _enrolled(fake_repo, clock)
    stray = make_lesson(uuid.uuid4(), 0)
    tracker = ProgressTracker(fake_repo, clock=clock)

    with pytest.raises(ValidationError):
        await tracker.complete_lesson(enrollment, stray)


@pytest.mark.asyncio
async def test_failed_write_leaves_state_unchanged(fake_repo, clock) -> None:
    _, lessons, enrollment = await _enrolled(fake_repo, clock)
    tracker = ProgressTracker(fake_repo, clock=clock)
    fake_repo.fail_on.add("upsert_lesson_progress")

    with pytest.raises(PersistenceError):
        await tracker.complete_lesson(enrollment, lessons[0])

    assert fake_repo.progress == {}
    assert fake_repo.enrollments[enrollment.enrollment_id] == enrollment


@pytest.mark.asyncio
async def test_percentages_per_course_and_module(fake_repo, clock) -> None:
    course = make_course()
    lessons = [
        make_lesson(course.course_id, 0, module_name="Intro"),
        make_lesson(course.course_id, 1, module_name="Intro"),
        make_lesson(course.course_id, 2, module_name="Deep dive"),
    ]
    fake_repo.add_course(course, lessons)
    enrollment = await EnrollmentManager(fake_repo, clock=clock).enroll(uuid.uuid4(), course)
    tracker = ProgressTracker(fake_repo, clock=clock)
    await tracker.complete_lesson(enrollment, lessons[0])

    progress = {p.lesson_id: p for p in await fake_repo.get_lesson_progress(enrollment.enrollment_id)}
    assert course_percentage(lessons, progress) == 33
    assert module_percentages(lessons, progress) == {"Intro": 50, "Deep dive": 0}
    assert course_percentage([], progress) == 0


def test_advance_follows_document_order() -> None:
    course_id = uuid.uuid4()
    lessons = [make_lesson(course_id, i) for i in (2, 0, 1)]
    first, second, third = sorted(lessons, key=lambda l: l.sort_order)
    assert ProgressTracker.advance(lessons, first) == second
    assert ProgressTracker.advance(lessons, third) is None
