"""initial progress schema: courses, lessons, enrollments, lesson progress, reviews

Revision ID: 001_initial_progress
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_progress"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

course_status = postgresql.ENUM("draft", "published", "archived", name="course_status", create_type=False)
difficulty_level = postgresql.ENUM(
    "beginner", "intermediate", "advanced", name="difficulty_level", create_type=False,
)
lesson_content_type = postgresql.ENUM(
    "text", "video", "pdf", "link", "mixed", name="lesson_content_type", create_type=False,
)
payment_method = postgresql.ENUM("free", "pending", "paid", name="payment_method", create_type=False)
lesson_progress_status = postgresql.ENUM(
    "not_started", "in_progress", "completed", name="lesson_progress_status", create_type=False,
)

_ENUMS = (course_status, difficulty_level, lesson_content_type, payment_method, lesson_progress_status)


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in _ENUMS:
        enum_type.create(bind, checkfirst=True)

    # ── courses ──────────────────────────────────────────────────────────
    op.create_table(
        "courses",
        sa.Column("course_id", sa.Uuid(), primary_key=True),
        sa.Column("network_id", sa.Uuid(), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=True),
        sa.Column("instructor_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("slug", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(precision=10, scale=2), nullable=False, server_default="0.00"),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("is_free", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("difficulty_level", difficulty_level, nullable=False, server_default="beginner"),
        sa.Column("status", course_status, nullable=False, server_default="draft"),
        sa.Column("estimated_duration_hours", sa.Integer(), nullable=True),
        sa.Column("enrollment_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating_average", sa.Numeric(precision=3, scale=2), nullable=False, server_default="0.00"),
        sa.Column("rating_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_courses_network_id", "courses", ["network_id"])
    op.create_index("ix_courses_instructor_id", "courses", ["instructor_id"])
    op.create_index("ix_courses_status", "courses", ["status"])
    op.create_index("uq_courses_network_slug", "courses", ["network_id", "slug"], unique=True)

    # ── lessons ──────────────────────────────────────────────────────────
    op.create_table(
        "lessons",
        sa.Column("lesson_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "course_id", sa.Uuid(),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("slug", sa.String(length=300), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("content_type", lesson_content_type, nullable=False, server_default="text"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("module_name", sa.String(length=200), nullable=True),
        sa.Column("is_preview", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("estimated_duration_minutes", sa.Integer(), nullable=True),
        sa.Column(
            "attachments", postgresql.JSONB(astext_type=sa.Text()),
            nullable=True, server_default="[]",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_lessons_course_id", "lessons", ["course_id"])
    op.create_index("ix_lessons_course_sort", "lessons", ["course_id", "sort_order"])

    # ── enrollments ──────────────────────────────────────────────────────
    op.create_table(
        "enrollments",
        sa.Column("enrollment_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "course_id", sa.Uuid(),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("profile_id", sa.Uuid(), nullable=False),
        sa.Column("amount_paid", sa.Numeric(precision=10, scale=2), nullable=False, server_default="0.00"),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("payment_method", payment_method, nullable=False, server_default="free"),
        sa.Column("progress_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("enrolled_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "uq_enrollments_active_course_profile", "enrollments", ["course_id", "profile_id"],
        unique=True, postgresql_where=sa.text("is_active"),
    )
    op.create_index("ix_enrollments_profile_id", "enrollments", ["profile_id"])
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])

    # ── lesson_progress ──────────────────────────────────────────────────
    op.create_table(
        "lesson_progress",
        sa.Column("progress_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "enrollment_id", sa.Uuid(),
            sa.ForeignKey("enrollments.enrollment_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "lesson_id", sa.Uuid(),
            sa.ForeignKey("lessons.lesson_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", lesson_progress_status, nullable=False, server_default="not_started"),
        sa.Column("progress_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("enrollment_id", "lesson_id", name="uq_lesson_progress_enrollment_lesson"),
    )
    op.create_index("ix_lesson_progress_enrollment_id", "lesson_progress", ["enrollment_id"])
    op.create_index("ix_lesson_progress_lesson_id", "lesson_progress", ["lesson_id"])

    # ── course_reviews ───────────────────────────────────────────────────
    op.create_table(
        "course_reviews",
        sa.Column("review_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "course_id", sa.Uuid(),
            sa.ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("reviewer_id", sa.Uuid(), nullable=False),
        sa.Column("rating", sa.SmallInteger(), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_course_reviews_rating"),
    )
    op.create_index("ix_course_reviews_course_id", "course_reviews", ["course_id"])


def downgrade() -> None:
    op.drop_table("course_reviews")
    op.drop_table("lesson_progress")
    op.drop_table("enrollments")
    op.drop_table("lessons")
    op.drop_table("courses")

    bind = op.get_bind()
    for enum_type in reversed(_ENUMS):
        enum_type.drop(bind, checkfirst=True)
