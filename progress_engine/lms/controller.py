"""Progress controller — maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status

from progress_engine.exceptions import (
    AlreadyEnrolledError,
    ConflictError,
    CourseNotFoundError,
    CourseNotPublishedError,
    EnrollmentNotFoundError,
    InvalidStatusTransitionError,
    LessonGatedError,
    LessonNotFoundError,
    NotCourseOwnerError,
    NotEnrolledError,
    PersistenceError,
    ProgressEngineError,
    ValidationError,
)
from progress_engine.lessons.graph import can_access, group_by_module, resume_lesson
from progress_engine.lms import service
from progress_engine.lms.schemas import (
    CompletionResponse,
    CourseOutlineResponse,
    CourseResponse,
    CourseStatsResponse,
    EnrollmentResponse,
    EnrollmentStatusResponse,
    InstructorStatsResponse,
    LessonProgressResponse,
    OutlineLesson,
    OutlineModule,
    ReconcilePaymentRequest,
)
from progress_engine.models.enums import LessonProgressStatus
from progress_engine.progress.tracker import course_percentage
from progress_engine.repository.base import EnrollmentRepository
from progress_engine.stats import service as stats_service


def _handle_domain_error(exc: ProgressEngineError) -> HTTPException:
    if isinstance(exc, (CourseNotFoundError, LessonNotFoundError, EnrollmentNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, AlreadyEnrolledError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already enrolled in this course.")
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, NotCourseOwnerError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the course instructor.")
    if isinstance(exc, NotEnrolledError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enrolled in this course.")
    if isinstance(exc, LessonGatedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Complete previous lessons to unlock this content.")
    if isinstance(exc, CourseNotPublishedError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Course is not published.")
    if isinstance(exc, InvalidStatusTransitionError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage temporarily unavailable.")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


# ---------------------------------------------------------------------------
# Enrollment
# ---------------------------------------------------------------------------


async def enroll(
    repo: EnrollmentRepository,
    profile_id: UUID,
    course_id: UUID,
    *,
    default_currency: str,
) -> EnrollmentResponse:
    try:
        enrollment = await service.enroll(
            repo, profile_id, course_id, default_currency=default_currency,
        )
        return EnrollmentResponse.model_validate(enrollment)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc


async def get_enrollment_status(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> EnrollmentStatusResponse:
    try:
        enrollment = await service.get_enrollment_status(repo, profile_id, course_id)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc
    if enrollment is None:
        return EnrollmentStatusResponse(enrolled=False)
    return EnrollmentStatusResponse(
        enrolled=True, enrollment=EnrollmentResponse.model_validate(enrollment),
    )


async def drop_enrollment(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> EnrollmentResponse:
    try:
        enrollment = await service.drop_enrollment(repo, profile_id, course_id)
        return EnrollmentResponse.model_validate(enrollment)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc


async def reconcile_payment(
    repo: EnrollmentRepository, enrollment_id: UUID, body: ReconcilePaymentRequest
) -> EnrollmentResponse:
    try:
        enrollment = await service.reconcile_payment(repo, enrollment_id, body.payment_status)
        return EnrollmentResponse.model_validate(enrollment)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc


# ---------------------------------------------------------------------------
# Outline and lesson progress
# ---------------------------------------------------------------------------


async def get_course_outline(
    repo: EnrollmentRepository, profile_id: UUID | None, course_id: UUID
) -> CourseOutlineResponse:
    try:
        view = await service.load_course_view(repo, course_id, profile_id)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc

    position = {lesson.lesson_id: i for i, lesson in enumerate(view.lessons)}
    modules = []
    for name, module_lessons in group_by_module(view.lessons).items():
        items = []
        for lesson in module_lessons:
            record = view.progress.get(lesson.lesson_id)
            items.append(
                OutlineLesson(
                    lesson_id=lesson.lesson_id,
                    title=lesson.title,
                    content_type=lesson.content_type,
                    sort_order=lesson.sort_order,
                    is_preview=lesson.is_preview,
                    estimated_duration_minutes=lesson.estimated_duration_minutes,
                    can_access=can_access(
                        lesson, position[lesson.lesson_id], view.lessons,
                        view.enrollment, view.progress,
                    ),
                    status=record.status if record else LessonProgressStatus.NOT_STARTED,
                )
            )
        modules.append(
            OutlineModule(
                name=name,
                progress_percentage=course_percentage(module_lessons, view.progress),
                lessons=items,
            )
        )

    resume = resume_lesson(view.lessons, view.progress) if view.enrollment else None
    return CourseOutlineResponse(
        course_id=view.course.course_id,
        title=view.course.title,
        status=view.course.status,
        enrollment=(
            EnrollmentResponse.model_validate(view.enrollment) if view.enrollment else None
        ),
        progress_percentage=course_percentage(view.lessons, view.progress),
        resume_lesson_id=resume.lesson_id if resume else None,
        modules=modules,
    )


async def open_lesson(
    repo: EnrollmentRepository, profile_id: UUID, lesson_id: UUID
) -> LessonProgressResponse:
    try:
        progress = await service.open_lesson(repo, profile_id, lesson_id)
        return LessonProgressResponse.model_validate(progress)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc


async def complete_lesson(
    repo: EnrollmentRepository, profile_id: UUID, lesson_id: UUID
) -> CompletionResponse:
    try:
        result = await service.complete_lesson(repo, profile_id, lesson_id)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc
    return CompletionResponse(
        progress=LessonProgressResponse.model_validate(result.progress),
        enrollment=EnrollmentResponse.model_validate(result.enrollment),
        next_lesson_id=result.next_lesson.lesson_id if result.next_lesson else None,
    )


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


async def get_course_stats(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseStatsResponse:
    try:
        stats = await service.get_course_stats(repo, profile_id, course_id)
        return CourseStatsResponse.model_validate(stats)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc


async def refresh_course_stats(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseResponse:
    try:
        course = await service.refresh_course_stats(repo, profile_id, course_id)
        return CourseResponse.model_validate(course)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc


async def get_instructor_stats(
    repo: EnrollmentRepository, instructor_id: UUID
) -> InstructorStatsResponse:
    try:
        stats = await stats_service.get_instructor_stats(repo, instructor_id)
        return InstructorStatsResponse.model_validate(stats)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc


# ---------------------------------------------------------------------------
# Course lifecycle
# ---------------------------------------------------------------------------


async def publish_course(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseResponse:
    try:
        course = await service.publish_course(repo, profile_id, course_id)
        return CourseResponse.model_validate(course)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc


async def revert_to_draft(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseResponse:
    try:
        course = await service.revert_to_draft(repo, profile_id, course_id)
        return CourseResponse.model_validate(course)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc


async def archive_course(
    repo: EnrollmentRepository, profile_id: UUID, course_id: UUID
) -> CourseResponse:
    try:
        course = await service.archive_course(repo, profile_id, course_id)
        return CourseResponse.model_validate(course)
    except ProgressEngineError as exc:
        raise _handle_domain_error(exc) from exc
