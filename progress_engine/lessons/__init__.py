from .graph import (
    DEFAULT_MODULE_NAME,
    can_access,
    group_by_module,
    module_key,
    next_lesson,
    order_lessons,
    resume_lesson,
)

__all__ = [
    "DEFAULT_MODULE_NAME",
    "can_access",
    "group_by_module",
    "module_key",
    "next_lesson",
    "order_lessons",
    "resume_lesson",
]
