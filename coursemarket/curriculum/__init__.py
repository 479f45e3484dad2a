"""Course curriculum: courses, chapters and lectures."""

from .models import (
    CURRICULUM_TABLES_CQL,
    Chapter,
    Course,
    CourseCurriculum,
    Lecture,
    parse_duration_seconds,
)
from .service import (
    CourseNotFoundError,
    CurriculumError,
    CurriculumService,
    InvalidCurriculumError,
)


__all__ = [
    "CURRICULUM_TABLES_CQL",
    "Chapter",
    "CourseCurriculum",
    "CourseNotFoundError",
    "Course",
    "CurriculumError",
    "CurriculumService",
    "InvalidCurriculumError",
    "Lecture",
    "parse_duration_seconds",
]
