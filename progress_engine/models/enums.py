import enum

from sqlalchemy import Enum as SAEnum


class CourseStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class DifficultyLevel(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ContentType(str, enum.Enum):
    TEXT = "text"
    VIDEO = "video"
    PDF = "pdf"
    LINK = "link"
    MIXED = "mixed"


class PaymentMethod(str, enum.Enum):
    FREE = "free"
    PENDING = "pending"
    PAID = "paid"


class PaymentStatus(str, enum.Enum):
    """Outcome reported by the payment provider for a pending enrollment."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class LessonProgressStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def _values(members: type[enum.Enum]) -> list[str]:
    return [m.value for m in members]


# SQLAlchemy Enum instances (reuse across models to avoid duplicate type creation).
# Stored by value so the database sees the same lower-case labels as the API.
course_status_enum = SAEnum(CourseStatus, name="course_status", values_callable=_values)
difficulty_level_enum = SAEnum(
    DifficultyLevel, name="difficulty_level", values_callable=_values
)
content_type_enum = SAEnum(ContentType, name="lesson_content_type", values_callable=_values)
payment_method_enum = SAEnum(PaymentMethod, name="payment_method", values_callable=_values)
lesson_progress_status_enum = SAEnum(
    LessonProgressStatus, name="lesson_progress_status", values_callable=_values
)
