import uuid

import pytest

from progress_engine.courses.service import archive_course, publish_course, revert_to_draft
from progress_engine.exceptions import CourseNotFoundError, InvalidStatusTransitionError
from progress_engine.models.enums import CourseStatus
from tests.fakes import make_course, make_lesson


@pytest.mark.asyncio
async def test_publish_requires_a_lesson(fake_repo, clock) -> None:
    course = fake_repo.add_course(make_course(status=CourseStatus.DRAFT))
    with pytest.raises(InvalidStatusTransitionError) as excinfo:
        await publish_course(fake_repo, course.course_id, clock=clock)
    assert "no lessons" in str(excinfo.value)

    fake_repo.add_course(course, [make_lesson(course.course_id, 0)])
    published = await publish_course(fake_repo, course.course_id, clock=clock)
    assert published.status == CourseStatus.PUBLISHED
    assert published.published_at is not None


@pytest.mark.asyncio
async def test_republish_keeps_first_publication_date(fake_repo, clock) -> None:
    course = make_course(status=CourseStatus.DRAFT)
    fake_repo.add_course(course, [make_lesson(course.course_id, 0)])
    first = await publish_course(fake_repo, course.course_id, clock=clock)
    draft = await revert_to_draft(fake_repo, course.course_id)
    assert draft.status == CourseStatus.DRAFT

    again = await publish_course(fake_repo, course.course_id, clock=clock)
    assert again.published_at == first.published_at


@pytest.mark.asyncio
async def test_archive_is_terminal(fake_repo, clock) -> None:
    course = make_course(status=CourseStatus.DRAFT)
    fake_repo.add_course(course, [make_lesson(course.course_id, 0)])
    archived = await archive_course(fake_repo, course.course_id)
    assert archived.status == CourseStatus.ARCHIVED

    with pytest.raises(InvalidStatusTransitionError):
        await publish_course(fake_repo, course.course_id, clock=clock)
    with pytest.raises(InvalidStatusTransitionError):
        await revert_to_draft(fake_repo, course.course_id)


@pytest.mark.asyncio
async def test_draft_cannot_revert_to_draft(fake_repo) -> None:
    course = fake_repo.add_course(make_course(status=CourseStatus.DRAFT))
    with pytest.raises(InvalidStatusTransitionError):
        await revert_to_draft(fake_repo, course.course_id)


@pytest.mark.asyncio
async def test_unknown_course(fake_repo) -> None:
    with pytest.raises(CourseNotFoundError):
        await archive_course(fake_repo, uuid.uuid4())
