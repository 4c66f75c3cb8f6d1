"""Domain exception classes for the progress engine.

Raised by repository and service-layer code and caught by controllers
to map to appropriate HTTP responses. A lookup that finds nothing is not
an error: repository lookups return ``None`` and only operations that
need the row raise one of the ``*NotFoundError`` classes.
"""


class ProgressEngineError(Exception):
    """Base class for every error raised by the engine."""


# ---------------------------------------------------------------------------
# Persistence taxonomy
# ---------------------------------------------------------------------------


class ConflictError(ProgressEngineError):
    """Raised when a write violates a uniqueness constraint."""


class ValidationError(ProgressEngineError):
    """Raised when input is malformed or missing required fields."""


class PersistenceError(ProgressEngineError):
    """Raised when the backing store fails. The original cause is chained."""


# ---------------------------------------------------------------------------
# Lookups that must succeed
# ---------------------------------------------------------------------------


class CourseNotFoundError(ProgressEngineError):
    """Raised when a course cannot be found by ID."""

    def __init__(self, identifier: str = ""):
        self.identifier = identifier
        super().__init__(f"Course not found: {identifier}")


class LessonNotFoundError(ProgressEngineError):
    def __init__(self, lesson_id: str = ""):
        self.lesson_id = lesson_id
        super().__init__(f"Lesson not found: {lesson_id}")


class EnrollmentNotFoundError(ProgressEngineError):
    def __init__(self, identifier: str = ""):
        self.identifier = identifier
        super().__init__(f"Enrollment not found: {identifier}")


# ---------------------------------------------------------------------------
# Domain rules
# ---------------------------------------------------------------------------


class AlreadyEnrolledError(ConflictError):
    """Raised when a profile already holds an active enrollment in the course."""

    def __init__(self, course_id: str = "", profile_id: str = ""):
        self.course_id = course_id
        self.profile_id = profile_id
        super().__init__(f"Profile {profile_id} is already enrolled in course {course_id}")


class NotEnrolledError(ProgressEngineError):
    """Raised when an operation requires an active enrollment that does not exist."""


class CourseNotPublishedError(ProgressEngineError):
    """Raised when enrollment is attempted on a course that is not published."""


class LessonGatedError(ProgressEngineError):
    """Raised when a lesson is opened before the previous lesson is completed."""

    def __init__(self, lesson_id: str = ""):
        self.lesson_id = lesson_id
        super().__init__(f"Complete previous lessons to unlock this content: {lesson_id}")


class InvalidStatusTransitionError(ProgressEngineError):
    """Raised when a course status transition is not allowed."""

    def __init__(self, current: str, target: str, reason: str = ""):
        self.current = current
        self.target = target
        self.reason = reason
        message = f"Cannot transition from {current} to {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NotCourseOwnerError(ProgressEngineError):
    """Raised when someone other than the course instructor changes its status."""
