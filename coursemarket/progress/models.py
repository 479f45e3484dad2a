"""Database models for lesson progress.

One row per (user, course, lesson). The partition key is (user_id, course_id)
so the full progress of a user in a course is a single-partition read.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from coursemarket.utils import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

LESSON_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_progress (
    user_id UUID,
    course_id UUID,
    lesson_id UUID,
    progress DOUBLE,
    completed BOOLEAN,
    last_updated TIMESTAMP,
    PRIMARY KEY ((user_id, course_id), lesson_id)
)
"""

PROGRESS_TABLES_CQL = [
    LESSON_PROGRESS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class LessonProgress:
    """Watch state of one lesson for one user.

    Attributes:
        user_id: User UUID
        course_id: Course UUID
        lesson_id: Lecture UUID
        progress: Seconds watched, never negative
        completed: Whether the lesson is marked as completed
        last_updated: Time of the last write
    """

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
        progress: float = 0.0,
        completed: bool = False,
        last_updated: datetime | None = None,
    ):
        self.user_id = user_id
        self.course_id = course_id
        self.lesson_id = lesson_id
        self.progress = max(float(progress or 0.0), 0.0)
        self.completed = bool(completed)
        self.last_updated = ensure_utc_aware(last_updated) or utc_now()

    @classmethod
    def from_row(cls, row: Any) -> "LessonProgress":
        """Create LessonProgress instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            course_id=row.course_id,
            lesson_id=row.lesson_id,
            progress=row.progress or 0.0,
            completed=row.completed or False,
            last_updated=row.last_updated,
        )

    def __repr__(self) -> str:
        return (
            f"<LessonProgress user={self.user_id} lesson={self.lesson_id} "
            f"{self.progress}s completed={self.completed}>"
        )


class CourseProgressStatus(str, Enum):
    """Course-level progress status."""

    STARTED = "started"
    COMPLETED = "completed"


@dataclass(frozen=True)
class CourseProgress:
    """Course-level aggregate derived from the curriculum and progress rows.

    Attributes:
        watched_duration: Sum of watched seconds over curriculum lessons
        total_duration: Curriculum duration in seconds
        completed_lessons: Curriculum lessons marked as completed
        total_lessons: Lesson count of the curriculum
        percentage_completed: completed / total * 100, unrounded
        status: started or completed
    """

    watched_duration: float
    total_duration: float
    completed_lessons: int
    total_lessons: int
    percentage_completed: float
    status: CourseProgressStatus

    @property
    def is_completed(self) -> bool:
        return self.status is CourseProgressStatus.COMPLETED
