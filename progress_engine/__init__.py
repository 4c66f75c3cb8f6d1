"""Course progress engine: enrollment, sequential lesson access and progress tracking."""

__version__ = "0.1.0"
