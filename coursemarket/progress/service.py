"""Lesson progress service layer.

Business logic for:
- Recording lesson watch events
- Course-level aggregation over the stored lesson rows
- Flipping the enrollment to completed once every lesson is done

The write path is three separate single-row operations (progress upsert,
re-read, enrollment upsert). There is no cross-row transaction: if the
process dies after the progress write, the enrollment catches up on the next
call that sees a completed aggregate.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemarket.curriculum.models import CourseCurriculum
from coursemarket.enrollments.models import EnrollmentStatus
from coursemarket.enrollments.service import NotEnrolledError
from coursemarket.utils import utc_now

from .models import CourseProgress, CourseProgressStatus, LessonProgress


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursemarket.curriculum.service import CurriculumService
    from coursemarket.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class LessonNotInCourseError(ProgressError):
    """Lesson id is not part of the course curriculum.

    Points at a stale or forged lesson id on the client; retrying cannot help.
    """

    def __init__(self, message: str = "Lesson not found in this course"):
        super().__init__(message, "lesson_not_in_course")


# ==============================================================================
# Aggregation
# ==============================================================================


def compute_course_progress(
    curriculum: CourseCurriculum,
    rows: Iterable[LessonProgress],
) -> CourseProgress:
    """Aggregate lesson rows against the current curriculum.

    Rows for lessons no longer in the curriculum are ignored, so the
    percentage never exceeds 100.
    """
    watched = 0.0
    completed = 0
    for row in rows:
        if not curriculum.contains_lecture(row.lesson_id):
            continue
        watched += row.progress
        if row.completed:
            completed += 1

    total = curriculum.total_lessons
    percentage = completed / total * 100 if total > 0 else 0.0
    status = (
        CourseProgressStatus.COMPLETED
        if total > 0 and completed == total
        else CourseProgressStatus.STARTED
    )

    return CourseProgress(
        watched_duration=watched,
        total_duration=curriculum.total_duration_seconds,
        completed_lessons=completed,
        total_lessons=total,
        percentage_completed=percentage,
        status=status,
    )


@dataclass
class ProgressRecordResult:
    """Outcome of a recorded watch event.

    ``is_course_completed`` reflects the course state after the call;
    ``completed_now`` is set only on the call that flipped the enrollment.
    """

    progress: list[LessonProgress]
    course_progress: CourseProgress
    is_course_completed: bool
    completed_now: bool = False


@dataclass
class UserProgress:
    """Read-only view of a user's progress in a course."""

    progress: list[LessonProgress]
    course_progress: CourseProgress


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Service for lesson progress tracking."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        enrollment_service: "EnrollmentService",
        curriculum_service: "CurriculumService",
    ):
        """Initialize with Cassandra session and collaborating services."""
        self.session = session
        self.keyspace = keyspace
        self.enrollment_service = enrollment_service
        self.curriculum_service = curriculum_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_course_lesson_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE user_id = ? AND course_id = ?
        """)

        self._upsert_lesson_progress = self.session.prepare(f"""
            UPDATE {self.keyspace}.lesson_progress
            SET progress = ?, completed = ?, last_updated = ?
            WHERE user_id = ? AND course_id = ? AND lesson_id = ?
        """)

    # ==========================================================================
    # Write Path
    # ==========================================================================

    async def record_lesson_progress(
        self,
        user_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
        watched_seconds: float,
        completed: bool,
    ) -> ProgressRecordResult:
        """Persist a lesson watch event and recompute the course aggregate.

        Args:
            user_id: User UUID
            course_id: Course UUID
            lesson_id: Lecture UUID
            watched_seconds: Seconds watched (already coerced, >= 0)
            completed: Whether the lesson is finished

        Returns:
            ProgressRecordResult with all rows of the course and the aggregate

        Raises:
            CourseNotFoundError: Course missing or without curriculum
            InvalidCurriculumError: Curriculum has dangling references
            LessonNotInCourseError: Lesson is not part of the curriculum
            NotEnrolledError: User has no enrollment for the course
        """
        curriculum = await self.curriculum_service.get_course_with_lectures(course_id)

        if not curriculum.contains_lecture(lesson_id):
            logger.warning(
                "lesson_not_in_course",
                user_id=str(user_id),
                course_id=str(course_id),
                lesson_id=str(lesson_id),
            )
            raise LessonNotInCourseError

        enrollment = await self.enrollment_service.find_one(user_id, course_id)
        if enrollment is None:
            raise NotEnrolledError

        entry = LessonProgress(
            user_id=user_id,
            course_id=course_id,
            lesson_id=lesson_id,
            progress=watched_seconds,
            completed=completed,
            last_updated=utc_now(),
        )
        await self.session.aexecute(
            self._upsert_lesson_progress,
            [
                entry.progress,
                entry.completed,
                entry.last_updated,
                entry.user_id,
                entry.course_id,
                entry.lesson_id,
            ],
        )

        logger.info(
            "lesson_progress_recorded",
            user_id=str(user_id),
            course_id=str(course_id),
            lesson_id=str(lesson_id),
            progress=entry.progress,
            completed=entry.completed,
        )

        rows = await self._get_course_rows(user_id, course_id)
        aggregate = compute_course_progress(curriculum, rows)

        completed_now = False
        if aggregate.is_completed and not enrollment.is_completed:
            # Conditional write: only one concurrent caller sees completed_now
            _, completed_now = await self.enrollment_service.upsert_status(
                user_id, course_id, EnrollmentStatus.COMPLETED
            )
            if completed_now:
                logger.info(
                    "course_completed",
                    user_id=str(user_id),
                    course_id=str(course_id),
                    total_lessons=aggregate.total_lessons,
                )

        return ProgressRecordResult(
            progress=rows,
            course_progress=aggregate,
            is_course_completed=aggregate.is_completed or enrollment.is_completed,
            completed_now=completed_now,
        )

    # ==========================================================================
    # Read Path
    # ==========================================================================

    async def get_user_progress(self, user_id: UUID, course_id: UUID) -> UserProgress:
        """Get stored lesson rows and the course aggregate.

        Raises:
            CourseNotFoundError: Course missing or without curriculum
            InvalidCurriculumError: Curriculum has dangling references
            NotEnrolledError: User has no enrollment for the course
        """
        curriculum = await self.curriculum_service.get_course_with_lectures(course_id)

        enrollment = await self.enrollment_service.find_one(user_id, course_id)
        if enrollment is None:
            raise NotEnrolledError

        rows = await self._get_course_rows(user_id, course_id)
        return UserProgress(
            progress=rows,
            course_progress=compute_course_progress(curriculum, rows),
        )

    async def _get_course_rows(
        self, user_id: UUID, course_id: UUID
    ) -> list[LessonProgress]:
        result = await self.session.aexecute(
            self._get_course_lesson_progress, [user_id, course_id]
        )
        return [LessonProgress.from_row(row) for row in result]
