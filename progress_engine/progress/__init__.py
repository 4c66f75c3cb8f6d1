from .tracker import CompletionResult, ProgressTracker, course_percentage, module_percentages

__all__ = ["CompletionResult", "ProgressTracker", "course_percentage", "module_percentages"]
