import uuid
from decimal import Decimal

import pytest

from progress_engine.enrollment.manager import EnrollmentManager
from progress_engine.exceptions import (
    AlreadyEnrolledError,
    ConflictError,
    CourseNotPublishedError,
    PersistenceError,
)
from progress_engine.models.enums import CourseStatus, PaymentMethod, PaymentStatus
from tests.fakes import InMemoryRepository, make_course, paid_course


@pytest.mark.asyncio
async def test_free_course_enrollment(fake_repo, clock) -> None:
    course = fake_repo.add_course(make_course(is_free=True, price=Decimal("20")))
    enrollment = await EnrollmentManager(fake_repo, clock=clock).enroll(uuid.uuid4(), course)

    assert enrollment.amount_paid == Decimal("0")
    assert enrollment.payment_method == PaymentMethod.FREE
    assert enrollment.is_active
    assert enrollment.progress_percentage == 0


@pytest.mark.asyncio
async def test_paid_course_enrollment_is_pending(fake_repo, clock) -> None:
    course = fake_repo.add_course(paid_course("20", "USD"))
    enrollment = await EnrollmentManager(fake_repo, clock=clock).enroll(uuid.uuid4(), course)

    assert enrollment.amount_paid == Decimal("20")
    assert enrollment.payment_method == PaymentMethod.PENDING
    assert enrollment.currency == "USD"


@pytest.mark.asyncio
async def test_enroll_twice_raises_and_keeps_first(fake_repo, clock) -> None:
    course = fake_repo.add_course(make_course())
    manager = EnrollmentManager(fake_repo, clock=clock)
    profile_id = uuid.uuid4()
    first = await manager.enroll(profile_id, course)

    with pytest.raises(AlreadyEnrolledError):
        await manager.enroll(profile_id, course)

    assert fake_repo.enrollments == {first.enrollment_id: first}


class _RacingRepository(InMemoryRepository):
    """Hides the existing enrollment from the pre-check, as a concurrent insert would."""

    async def get_enrollment(self, course_id, profile_id):
        self._enter("get_enrollment")
        return None


@pytest.mark.asyncio
async def test_store_conflict_surfaces_as_already_enrolled(clock) -> None:
    repo = _RacingRepository()
    course = repo.add_course(make_course())
    manager = EnrollmentManager(repo, clock=clock)
    profile_id = uuid.uuid4()
    await manager.enroll(profile_id, course)

    with pytest.raises(AlreadyEnrolledError) as excinfo:
        await manager.enroll(profile_id, course)
    assert isinstance(excinfo.value, ConflictError)
    assert isinstance(excinfo.value.__cause__, ConflictError)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [CourseStatus.DRAFT, CourseStatus.ARCHIVED])
async def test_only_published_courses_accept_enrollments(fake_repo, clock, status) -> None:
    course = fake_repo.add_course(make_course(status=status))
    with pytest.raises(CourseNotPublishedError):
        await EnrollmentManager(fake_repo, clock=clock).enroll(uuid.uuid4(), course)
    assert fake_repo.enrollments == {}


@pytest.mark.asyncio
async def test_default_currency_used_when_course_has_none(fake_repo, clock) -> None:
    course = fake_repo.add_course(paid_course(currency=""))
    manager = EnrollmentManager(fake_repo, default_currency="EUR", clock=clock)
    enrollment = await manager.enroll(uuid.uuid4(), course)
    assert enrollment.currency == "EUR"


@pytest.mark.asyncio
async def test_status(fake_repo, clock) -> None:
    course = fake_repo.add_course(make_course())
    manager = EnrollmentManager(fake_repo, clock=clock)
    profile_id = uuid.uuid4()
    assert await manager.status(profile_id, course) is None

    enrollment = await manager.enroll(profile_id, course)
    assert await manager.status(profile_id, course) == enrollment


@pytest.mark.asyncio
async def test_status_lookup_failure_propagates(fake_repo, clock) -> None:
    course = fake_repo.add_course(make_course())
    fake_repo.fail_on.add("get_enrollment")
    with pytest.raises(PersistenceError):
        await EnrollmentManager(fake_repo, clock=clock).status(uuid.uuid4(), course)


@pytest.mark.asyncio
async def test_successful_payment_confirms_pending_enrollment(fake_repo, clock) -> None:
    course = fake_repo.add_course(paid_course())
    manager = EnrollmentManager(fake_repo, clock=clock)
    enrollment = await manager.enroll(uuid.uuid4(), course)

    paid = await manager.reconcile_payment(enrollment, PaymentStatus.SUCCEEDED)

    assert paid.payment_method == PaymentMethod.PAID
    assert paid.is_active
    assert paid.amount_paid == enrollment.amount_paid


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", [PaymentStatus.FAILED, PaymentStatus.REFUNDED])
async def test_failed_payment_frees_the_slot(fake_repo, clock, outcome) -> None:
    course = fake_repo.add_course(paid_course())
    manager = EnrollmentManager(fake_repo, clock=clock)
    profile_id = uuid.uuid4()
    enrollment = await manager.enroll(profile_id, course)

    dropped = await manager.reconcile_payment(enrollment, outcome)
    assert not dropped.is_active

    retry = await manager.enroll(profile_id, course)
    assert retry.enrollment_id != enrollment.enrollment_id


@pytest.mark.asyncio
async def test_free_enrollment_ignores_payment_outcomes(fake_repo, clock) -> None:
    course = fake_repo.add_course(make_course())
    manager = EnrollmentManager(fake_repo, clock=clock)
    enrollment = await manager.enroll(uuid.uuid4(), course)

    assert await manager.reconcile_payment(enrollment, PaymentStatus.REFUNDED) == enrollment
    assert "update_enrollment" not in fake_repo.calls


@pytest.mark.asyncio
async def test_drop_deactivates_once(fake_repo, clock) -> None:
    course = fake_repo.add_course(make_course())
    manager = EnrollmentManager(fake_repo, clock=clock)
    enrollment = await manager.enroll(uuid.uuid4(), course)

    dropped = await manager.drop(enrollment)
    assert not dropped.is_active
    assert await manager.drop(dropped) == dropped
    assert fake_repo.calls.count("update_enrollment") == 1


@pytest.mark.asyncio
async def test_late_success_for_dropped_enrollment_is_ignored(fake_repo, clock) -> None:
    course = fake_repo.add_course(paid_course())
    manager = EnrollmentManager(fake_repo, clock=clock)
    profile_id = uuid.uuid4()
    first = await manager.enroll(profile_id, course)
    first = await manager.reconcile_payment(first, PaymentStatus.FAILED)
    retry = await manager.enroll(profile_id, course)

    late = await manager.reconcile_payment(first, PaymentStatus.SUCCEEDED)

    assert late == first
    stored_first = fake_repo.enrollments[first.enrollment_id]
    assert stored_first.payment_method == PaymentMethod.PENDING
    assert not stored_first.is_active
    current = await manager.status(profile_id, course)
    assert current == retry
    assert current.payment_method == PaymentMethod.PENDING
