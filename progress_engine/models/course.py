import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progress_engine.database import Base

from .enums import (
    CourseStatus,
    DifficultyLevel,
    course_status_enum,
    difficulty_level_enum,
)


class Course(Base):
    __tablename__ = "courses"

    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Soft references: networks, categories and profiles live in the platform backend
    network_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    category_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    instructor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    slug: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    is_free: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    difficulty_level: Mapped[DifficultyLevel] = mapped_column(
        difficulty_level_enum, nullable=False, default=DifficultyLevel.BEGINNER
    )
    status: Mapped[CourseStatus] = mapped_column(
        course_status_enum, nullable=False, default=CourseStatus.DRAFT
    )
    estimated_duration_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Read-through cache, written only by refresh_course_stats
    enrollment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating_average: Mapped[Decimal] = mapped_column(
        Numeric(3, 2), nullable=False, default=Decimal("0.00")
    )
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    lessons = relationship("Lesson", back_populates="course", lazy="noload")
    enrollments = relationship("Enrollment", back_populates="course", lazy="noload")

    __table_args__ = (
        Index("ix_courses_network_id", "network_id"),
        Index("ix_courses_instructor_id", "instructor_id"),
        Index("ix_courses_status", "status"),
        Index("uq_courses_network_slug", "network_id", "slug", unique=True),
    )
