"""Progress router — HTTP layer only.

Defines the enrollment, lesson progress, stats and course lifecycle
endpoints. Delegates to the controller for orchestration.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from progress_engine.config import Settings
from progress_engine.dependencies import (
    get_optional_profile_id,
    get_profile_id,
    get_repository,
    get_settings,
    require_internal_token,
)
from progress_engine.lms import controller
from progress_engine.lms.schemas import (
    CompletionResponse,
    CourseOutlineResponse,
    CourseResponse,
    CourseStatsResponse,
    EnrollmentResponse,
    EnrollmentStatusResponse,
    InstructorStatsResponse,
    LessonProgressResponse,
    ReconcilePaymentRequest,
)
from progress_engine.repository.base import EnrollmentRepository

router = APIRouter(prefix="/progress", tags=["Progress"])


# ======================================================================
# Enrollment endpoints
# ======================================================================


@router.post(
    "/courses/{course_id}/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in a course",
    description="Free courses are enrolled immediately; paid courses start with "
    "payment_method=pending until the payment is reconciled.",
)
async def enroll(
    course_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
    settings: Settings = Depends(get_settings),
) -> EnrollmentResponse:
    return await controller.enroll(
        repo, profile_id, course_id, default_currency=settings.default_currency,
    )


@router.get(
    "/courses/{course_id}/enrollment",
    response_model=EnrollmentStatusResponse,
    summary="Get my enrollment in a course",
)
async def get_enrollment_status(
    course_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> EnrollmentStatusResponse:
    return await controller.get_enrollment_status(repo, profile_id, course_id)


@router.delete(
    "/courses/{course_id}/enrollment",
    response_model=EnrollmentResponse,
    summary="Drop my enrollment",
)
async def drop_enrollment(
    course_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> EnrollmentResponse:
    return await controller.drop_enrollment(repo, profile_id, course_id)


@router.post(
    "/enrollments/{enrollment_id}/payment",
    response_model=EnrollmentResponse,
    summary="Reconcile a payment outcome",
    description="Called by the payment service once the provider reports the outcome.",
    dependencies=[Depends(require_internal_token)],
)
async def reconcile_payment(
    enrollment_id: UUID,
    body: ReconcilePaymentRequest,
    repo: EnrollmentRepository = Depends(get_repository),
) -> EnrollmentResponse:
    return await controller.reconcile_payment(repo, enrollment_id, body)


# ======================================================================
# Outline and lesson progress endpoints
# ======================================================================


@router.get(
    "/courses/{course_id}/outline",
    response_model=CourseOutlineResponse,
    summary="Course outline with per-lesson access",
    description="Lessons grouped by module, with access and completion for the caller. "
    "Anonymous callers only see preview lessons as accessible.",
)
async def get_course_outline(
    course_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID | None = Depends(get_optional_profile_id),
) -> CourseOutlineResponse:
    return await controller.get_course_outline(repo, profile_id, course_id)


@router.post(
    "/lessons/{lesson_id}/open",
    response_model=LessonProgressResponse,
    summary="Start a lesson",
)
async def open_lesson(
    lesson_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> LessonProgressResponse:
    return await controller.open_lesson(repo, profile_id, lesson_id)


@router.post(
    "/lessons/{lesson_id}/complete",
    response_model=CompletionResponse,
    summary="Complete a lesson",
    description="Idempotent. Returns the updated enrollment and the next lesson to open.",
)
async def complete_lesson(
    lesson_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> CompletionResponse:
    return await controller.complete_lesson(repo, profile_id, lesson_id)


# ======================================================================
# Stats endpoints
# ======================================================================


@router.get(
    "/courses/{course_id}/stats",
    response_model=CourseStatsResponse,
    summary="Course aggregate stats",
    description="Only the course instructor may read its stats.",
)
async def get_course_stats(
    course_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> CourseStatsResponse:
    return await controller.get_course_stats(repo, profile_id, course_id)


@router.post(
    "/courses/{course_id}/stats/refresh",
    response_model=CourseResponse,
    summary="Recompute the course's cached counters",
)
async def refresh_course_stats(
    course_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> CourseResponse:
    return await controller.refresh_course_stats(repo, profile_id, course_id)


@router.get(
    "/instructors/me/stats",
    response_model=InstructorStatsResponse,
    summary="Stats across my courses",
)
async def get_instructor_stats(
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> InstructorStatsResponse:
    return await controller.get_instructor_stats(repo, profile_id)


# ======================================================================
# Course lifecycle endpoints
# ======================================================================


@router.post(
    "/courses/{course_id}/publish",
    response_model=CourseResponse,
    summary="Publish a course",
    description="DRAFT → PUBLISHED. The course needs at least one lesson.",
)
async def publish_course(
    course_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> CourseResponse:
    return await controller.publish_course(repo, profile_id, course_id)


@router.post(
    "/courses/{course_id}/draft",
    response_model=CourseResponse,
    summary="Revert a course to draft",
)
async def revert_to_draft(
    course_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> CourseResponse:
    return await controller.revert_to_draft(repo, profile_id, course_id)


@router.post(
    "/courses/{course_id}/archive",
    response_model=CourseResponse,
    summary="Archive a course",
)
async def archive_course(
    course_id: UUID,
    repo: EnrollmentRepository = Depends(get_repository),
    profile_id: UUID = Depends(get_profile_id),
) -> CourseResponse:
    return await controller.archive_course(repo, profile_id, course_id)
