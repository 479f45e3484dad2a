"""Database models for course curricula.

Cassandra table definitions for:
- Courses, chapters and lectures (main tables)
- Junction tables keeping the ordered chapter and lecture references

A curriculum is read-mostly: it is written by course authoring flows and
only read here, to validate lesson ids and to size the course.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from coursemarket.utils import ensure_utc_aware, utc_now


SECONDS_PER_MINUTE = 60

# Leading numeric prefix, e.g. "10", "7.5", "12 min"
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def parse_duration_seconds(duration: str | float | int | None) -> float:
    """Convert a lecture duration in minutes to seconds.

    Lecture durations are stored as free-form strings. The leading number is
    used; missing, non-numeric, negative or non-finite values count as zero.
    """
    if duration is None or isinstance(duration, bool):
        return 0.0
    if isinstance(duration, int | float):
        try:
            minutes = float(duration)
        except OverflowError:
            return 0.0
    else:
        match = _LEADING_NUMBER.match(str(duration))
        if match is None:
            return 0.0
        minutes = float(match.group(0))
    seconds = minutes * SECONDS_PER_MINUTE
    if not math.isfinite(seconds) or seconds < 0:
        return 0.0
    return seconds


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    instructor_id UUID,
    price DECIMAL,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

CHAPTER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.chapters (
    id UUID PRIMARY KEY,
    title TEXT
)
"""

# duration is kept as authored (minutes, free text)
LECTURE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lectures (
    id UUID PRIMARY KEY,
    title TEXT,
    duration TEXT,
    video_url TEXT,
    is_preview_free BOOLEAN
)
"""

COURSE_CHAPTERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_chapters (
    course_id UUID,
    position INT,
    chapter_id UUID,
    PRIMARY KEY (course_id, position, chapter_id)
) WITH CLUSTERING ORDER BY (position ASC, chapter_id ASC)
"""

CHAPTER_LECTURES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.chapter_lectures (
    chapter_id UUID,
    position INT,
    lecture_id UUID,
    PRIMARY KEY (chapter_id, position, lecture_id)
) WITH CLUSTERING ORDER BY (position ASC, lecture_id ASC)
"""

CURRICULUM_TABLES_CQL = [
    COURSE_TABLE_CQL,
    CHAPTER_TABLE_CQL,
    LECTURE_TABLE_CQL,
    COURSE_CHAPTERS_TABLE_CQL,
    CHAPTER_LECTURES_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Course UUID
        title: Course title
        instructor_id: Owning instructor
        price: Price (None or 0 for free courses)
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        instructor_id: UUID | None = None,
        price: Decimal | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = (title or "").strip()
        self.instructor_id = instructor_id
        self.price = price
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @property
    def is_free(self) -> bool:
        return self.price is None or self.price == 0

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title,
            instructor_id=row.instructor_id,
            price=row.price,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Course {self.title}>"


class Lecture:
    """Lecture entity, the smallest trackable unit of a course.

    Attributes:
        id: Lecture UUID
        title: Lecture title
        duration: Duration in minutes, as authored (string)
        video_url: Video locator on the CDN
        is_preview_free: Whether the lecture can be watched without enrolling
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        duration: str | None = None,
        video_url: str | None = None,
        is_preview_free: bool = False,
    ):
        self.id = id or uuid4()
        self.title = (title or "").strip()
        self.duration = duration
        self.video_url = video_url
        self.is_preview_free = bool(is_preview_free)

    @property
    def duration_seconds(self) -> float:
        """Duration in seconds, zero when the stored value is unusable."""
        return parse_duration_seconds(self.duration)

    @classmethod
    def from_row(cls, row: Any) -> "Lecture":
        """Create Lecture instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title,
            duration=row.duration,
            video_url=row.video_url,
            is_preview_free=row.is_preview_free or False,
        )

    def __repr__(self) -> str:
        return f"<Lecture {self.title} ({self.duration} min)>"


@dataclass
class Chapter:
    """Chapter with its lectures resolved, in curriculum order."""

    id: UUID
    title: str
    lectures: list[Lecture] = field(default_factory=list)


@dataclass
class CourseCurriculum:
    """A course together with its resolved chapters and lectures.

    The lecture index is built once per read so membership checks do not
    rescan every chapter.
    """

    course: Course
    chapters: list[Chapter] = field(default_factory=list)
    _lecture_index: dict[UUID, Lecture] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self._lecture_index = {
            lecture.id: lecture
            for chapter in self.chapters
            for lecture in chapter.lectures
        }

    @property
    def course_id(self) -> UUID:
        return self.course.id

    @property
    def lecture_ids(self) -> set[UUID]:
        return set(self._lecture_index)

    @property
    def total_lessons(self) -> int:
        return len(self._lecture_index)

    @property
    def total_duration_seconds(self) -> float:
        return sum(
            lecture.duration_seconds for lecture in self._lecture_index.values()
        )

    def contains_lecture(self, lecture_id: UUID) -> bool:
        """Whether the lecture belongs to some chapter of this course."""
        return lecture_id in self._lecture_index

    def get_lecture(self, lecture_id: UUID) -> Lecture | None:
        return self._lecture_index.get(lecture_id)
