"""Lesson progress tracking module.

Provides:
- Per-lesson watch state persistence
- Course-level aggregation against the curriculum
- Enrollment completion once every lesson is done
- A retrying HTTP client for the progress API
"""

from .models import (
    PROGRESS_TABLES_CQL,
    CourseProgress,
    CourseProgressStatus,
    LessonProgress,
)


__all__ = [
    "PROGRESS_TABLES_CQL",
    "CourseProgress",
    "CourseProgressStatus",
    "LessonProgress",
]
