import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progress_engine.database import Base

from .enums import PaymentMethod, payment_method_enum


class Enrollment(Base):
    __tablename__ = "enrollments"

    enrollment_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("courses.course_id", ondelete="CASCADE"),
        nullable=False,
    )
    # Soft reference: profiles live in the platform backend
    profile_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    payment_method: Mapped[PaymentMethod] = mapped_column(
        payment_method_enum, nullable=False, default=PaymentMethod.FREE
    )
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_accessed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    course = relationship("Course", back_populates="enrollments", lazy="select")
    progress_records = relationship("LessonProgress", back_populates="enrollment", lazy="noload")

    __table_args__ = (
        # At most one active enrollment per (course, profile)
        Index(
            "uq_enrollments_active_course_profile",
            "course_id",
            "profile_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
        Index("ix_enrollments_profile_id", "profile_id"),
        Index("ix_enrollments_course_id", "course_id"),
    )
