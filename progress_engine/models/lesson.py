import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progress_engine.database import Base

from .enums import ContentType, content_type_enum


class Lesson(Base):
    __tablename__ = "lessons"

    lesson_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("courses.course_id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    slug: Mapped[str | None] = mapped_column(String(300), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content_type: Mapped[ContentType] = mapped_column(
        content_type_enum, nullable=False, default=ContentType.TEXT
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Free-text grouping label; NULL/blank lands in the default module
    module_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_preview: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    estimated_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # [{"type": "application/pdf", "url": "...", "size": 1024}, ...]
    attachments: Mapped[list | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=True, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    course = relationship("Course", back_populates="lessons", lazy="select")

    __table_args__ = (
        Index("ix_lessons_course_id", "course_id"),
        Index("ix_lessons_course_sort", "course_id", "sort_order"),
    )
