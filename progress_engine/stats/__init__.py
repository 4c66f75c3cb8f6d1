from .aggregates import (
    CourseStats,
    InstructorStats,
    average_progress,
    average_rating,
    completion_rate,
    course_stats,
    instructor_revenue,
    instructor_stats,
)
from .service import get_course_stats, get_instructor_stats, refresh_course_stats

__all__ = [
    "CourseStats",
    "InstructorStats",
    "average_progress",
    "average_rating",
    "completion_rate",
    "course_stats",
    "get_course_stats",
    "get_instructor_stats",
    "instructor_revenue",
    "instructor_stats",
    "refresh_course_stats",
]
