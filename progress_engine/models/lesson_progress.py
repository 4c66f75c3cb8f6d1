import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progress_engine.database import Base

from .enums import LessonProgressStatus, lesson_progress_status_enum


class LessonProgress(Base):
    __tablename__ = "lesson_progress"

    progress_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    enrollment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("enrollments.enrollment_id", ondelete="CASCADE"),
        nullable=False,
    )
    lesson_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("lessons.lesson_id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[LessonProgressStatus] = mapped_column(
        lesson_progress_status_enum,
        nullable=False,
        default=LessonProgressStatus.NOT_STARTED,
    )
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    enrollment = relationship("Enrollment", back_populates="progress_records", lazy="select")
    lesson = relationship("Lesson", lazy="select")

    __table_args__ = (
        UniqueConstraint(
            "enrollment_id", "lesson_id", name="uq_lesson_progress_enrollment_lesson"
        ),
        Index("ix_lesson_progress_enrollment_id", "enrollment_id"),
        Index("ix_lesson_progress_lesson_id", "lesson_id"),
    )
