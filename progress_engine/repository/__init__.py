from .base import EnrollmentRepository
from .orm import SqlAlchemyRepository

__all__ = ["EnrollmentRepository", "SqlAlchemyRepository"]
