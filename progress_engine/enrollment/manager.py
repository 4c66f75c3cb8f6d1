"""Enrollment manager — eligibility, free vs. paid records, payment reconciliation.

The manager never touches the course's cached counters; those are
recomputed by ``progress_engine.stats.service.refresh_course_stats``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from progress_engine.exceptions import (
    AlreadyEnrolledError,
    ConflictError,
    CourseNotPublishedError,
)
from progress_engine.models.enums import CourseStatus, PaymentMethod, PaymentStatus
from progress_engine.repository.base import EnrollmentRepository
from progress_engine.schemas import CourseRecord, EnrollmentRecord, NewEnrollment

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EnrollmentManager:
    def __init__(
        self,
        repository: EnrollmentRepository,
        *,
        default_currency: str = "USD",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._default_currency = default_currency
        self._clock = clock

    def _new_enrollment(self, profile_id: UUID, course: CourseRecord) -> NewEnrollment:
        if course.is_free:
            amount, method = Decimal("0"), PaymentMethod.FREE
        else:
            amount, method = course.price, PaymentMethod.PENDING
        return NewEnrollment(
            course_id=course.course_id,
            profile_id=profile_id,
            amount_paid=amount,
            currency=course.currency or self._default_currency,
            payment_method=method,
            enrolled_at=self._clock(),
        )

    async def enroll(self, profile_id: UUID, course: CourseRecord) -> EnrollmentRecord:
        """Enroll ``profile_id`` in ``course``.

        The pre-check is best effort: a concurrent enrollment can still slip
        in between check and insert, in which case the store's uniqueness
        constraint rejects the insert and the conflict surfaces as
        :class:`AlreadyEnrolledError` as well.
        """
        if course.status != CourseStatus.PUBLISHED:
            raise CourseNotPublishedError()

        existing = await self._repository.get_enrollment(course.course_id, profile_id)
        if existing is not None:
            raise AlreadyEnrolledError(str(course.course_id), str(profile_id))

        try:
            enrollment = await self._repository.create_enrollment(
                self._new_enrollment(profile_id, course)
            )
        except ConflictError as exc:
            raise AlreadyEnrolledError(str(course.course_id), str(profile_id)) from exc

        logger.info(
            "Profile %s enrolled in course %s (%s)",
            profile_id,
            course.course_id,
            enrollment.payment_method.value,
        )
        return enrollment

    async def status(self, profile_id: UUID, course: CourseRecord) -> EnrollmentRecord | None:
        """Active enrollment of ``profile_id`` in ``course``; ``None`` when not enrolled."""
        return await self._repository.get_enrollment(course.course_id, profile_id)

    async def reconcile_payment(
        self, enrollment: EnrollmentRecord, payment_status: PaymentStatus
    ) -> EnrollmentRecord:
        """Bring a paid enrollment in line with what the payment provider reports.

        ``succeeded`` confirms a pending enrollment. ``failed`` and ``refunded``
        deactivate it, which frees the (course, profile) slot for a new attempt.
        Free and inactive enrollments are returned unchanged.
        """
        if enrollment.payment_method == PaymentMethod.FREE:
            return enrollment

        if not enrollment.is_active:
            logger.warning(
                "Ignoring payment %s for inactive enrollment %s",
                payment_status.value,
                enrollment.enrollment_id,
            )
            return enrollment

        if payment_status == PaymentStatus.SUCCEEDED:
            if enrollment.payment_method == PaymentMethod.PAID:
                return enrollment
            updated = await self._repository.update_enrollment(
                enrollment.enrollment_id, {"payment_method": PaymentMethod.PAID}
            )
            logger.info("Enrollment %s payment confirmed", enrollment.enrollment_id)
            return updated

        updated = await self._repository.update_enrollment(
            enrollment.enrollment_id, {"is_active": False}
        )
        logger.info(
            "Enrollment %s deactivated after payment %s",
            enrollment.enrollment_id,
            payment_status.value,
        )
        return updated

    async def drop(self, enrollment: EnrollmentRecord) -> EnrollmentRecord:
        if not enrollment.is_active:
            return enrollment
        updated = await self._repository.update_enrollment(
            enrollment.enrollment_id, {"is_active": False}
        )
        logger.info("Enrollment %s dropped", enrollment.enrollment_id)
        return updated
