"""Pydantic schemas for lesson progress.

Request and response models for:
- Lesson watch events sent by the course player
- Course-level progress reads
"""

import math
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from coursemarket.core.schemas import CamelModel

from .models import CourseProgress, CourseProgressStatus, LessonProgress


TRUTHY_STRINGS = frozenset({"true", "1", "yes", "on"})


def coerce_watched_seconds(value: Any) -> float:
    """Coerce a watched-seconds value to a non-negative float.

    Missing or non-numeric values become 0; negatives are clamped to 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(seconds) or seconds < 0:
        return 0.0
    return seconds


def coerce_completed(value: Any) -> bool:
    """Coerce a completion flag to a boolean."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return bool(value)


# ==============================================================================
# Request Schemas
# ==============================================================================


class RecordProgressRequest(CamelModel):
    """Lesson watch event (periodic time update or end of video)."""

    user_id: UUID = Field(..., description="User UUID")
    course_id: UUID = Field(..., description="Course UUID")
    lesson_id: UUID = Field(..., description="Lecture UUID")
    progress: float = Field(default=0.0, description="Seconds watched")
    completed: bool = Field(default=False, description="Lesson finished")

    @field_validator("progress", mode="before")
    @classmethod
    def _coerce_progress(cls, value: Any) -> float:
        return coerce_watched_seconds(value)

    @field_validator("completed", mode="before")
    @classmethod
    def _coerce_completed(cls, value: Any) -> bool:
        return coerce_completed(value)


# ==============================================================================
# Response Schemas
# ==============================================================================


class ProgressResponse(CamelModel):
    """Stored progress of one lesson."""

    user_id: UUID
    course_id: UUID
    lesson_id: UUID
    progress: float
    completed: bool
    last_updated: datetime

    @classmethod
    def from_entity(cls, entity: LessonProgress) -> "ProgressResponse":
        """Create response from entity."""
        return cls(
            user_id=entity.user_id,
            course_id=entity.course_id,
            lesson_id=entity.lesson_id,
            progress=entity.progress,
            completed=entity.completed,
            last_updated=entity.last_updated,
        )


class CourseProgressResponse(CamelModel):
    """Course-level aggregate."""

    watched_duration: float
    percentage_completed: float
    total_duration: float
    status: CourseProgressStatus
    completed_lessons: int
    total_lessons: int

    @classmethod
    def from_aggregate(cls, aggregate: CourseProgress) -> "CourseProgressResponse":
        return cls(
            watched_duration=aggregate.watched_duration,
            percentage_completed=aggregate.percentage_completed,
            total_duration=aggregate.total_duration,
            status=aggregate.status,
            completed_lessons=aggregate.completed_lessons,
            total_lessons=aggregate.total_lessons,
        )


class UserProgressResponse(CamelModel):
    """Progress rows of a user in a course plus the aggregate."""

    progress: list[ProgressResponse]
    course_progress: CourseProgressResponse


class RecordProgressResponse(UserProgressResponse):
    """Answer to a watch event."""

    is_course_completed: bool
