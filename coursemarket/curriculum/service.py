"""Curriculum read service.

Resolves a course into its ordered chapters and lectures. The result is used
to validate lesson ids on progress writes and to size a course (lesson count,
total duration).
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemarket.curriculum.models import Chapter, Course, CourseCurriculum, Lecture


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CurriculumError(Exception):
    """Base curriculum error."""

    def __init__(self, message: str, code: str = "curriculum_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotFoundError(CurriculumError):
    """Course does not exist or has no curriculum."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class InvalidCurriculumError(CurriculumError):
    """Curriculum references a chapter or lecture that does not exist."""

    def __init__(self, message: str = "Course curriculum is invalid"):
        super().__init__(message, "invalid_curriculum")


# ==============================================================================
# Curriculum Service
# ==============================================================================


class CurriculumService:
    """Read access to courses and their chapter/lecture structure."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._get_course_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._get_course_chapters = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_chapters WHERE course_id = ?"
        )
        self._get_chapter_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.chapters WHERE id = ?"
        )
        self._get_chapter_lectures = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.chapter_lectures WHERE chapter_id = ?"
        )
        self._get_lecture_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lectures WHERE id = ?"
        )

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course by ID."""
        result = await self.session.aexecute(self._get_course_by_id, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def get_course_with_lectures(self, course_id: UUID) -> CourseCurriculum:
        """Load a course with its chapters and lectures resolved.

        Raises:
            CourseNotFoundError: Course is missing or has no chapters
            InvalidCurriculumError: A chapter or lecture reference is dangling
        """
        course = await self.get_course(course_id)
        if course is None:
            raise CourseNotFoundError

        chapter_links = await self.session.aexecute(
            self._get_course_chapters, [course_id]
        )
        links = sorted(chapter_links, key=lambda row: row.position)
        if not links:
            raise CourseNotFoundError("Course has no curriculum")

        chapters = [
            await self._load_chapter(course_id, link.chapter_id) for link in links
        ]
        return CourseCurriculum(course=course, chapters=chapters)

    async def _load_chapter(self, course_id: UUID, chapter_id: UUID) -> Chapter:
        result = await self.session.aexecute(self._get_chapter_by_id, [chapter_id])
        row = result.one()
        if row is None:
            logger.warning(
                "curriculum_dangling_chapter",
                course_id=str(course_id),
                chapter_id=str(chapter_id),
            )
            raise InvalidCurriculumError

        lecture_links = await self.session.aexecute(
            self._get_chapter_lectures, [chapter_id]
        )
        lectures: list[Lecture] = []
        for link in sorted(lecture_links, key=lambda r: r.position):
            lecture_result = await self.session.aexecute(
                self._get_lecture_by_id, [link.lecture_id]
            )
            lecture_row = lecture_result.one()
            if lecture_row is None:
                logger.warning(
                    "curriculum_dangling_lecture",
                    course_id=str(course_id),
                    chapter_id=str(chapter_id),
                    lecture_id=str(link.lecture_id),
                )
                raise InvalidCurriculumError
            lectures.append(Lecture.from_row(lecture_row))

        return Chapter(id=row.id, title=row.title or "", lectures=lectures)
