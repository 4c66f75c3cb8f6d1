# Import all models so Alembic can discover them via Base.metadata
from .course import Course
from .enrollment import Enrollment
from .lesson import Lesson
from .lesson_progress import LessonProgress
from .review import Review

__all__ = [
    "Course",
    "Enrollment",
    "Lesson",
    "LessonProgress",
    "Review",
]
