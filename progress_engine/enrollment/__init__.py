from .manager import EnrollmentManager

__all__ = ["EnrollmentManager"]
