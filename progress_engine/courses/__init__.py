from .service import archive_course, publish_course, revert_to_draft

__all__ = ["archive_course", "publish_course", "revert_to_draft"]
