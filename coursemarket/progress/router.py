"""Lesson progress API endpoints.

Provides routes for:
- Lesson watch events from the course player
- Progress queries for a user in a course
"""

from uuid import UUID

from fastapi import APIRouter

from coursemarket.core.middleware import set_user_context
from coursemarket.curriculum.service import CurriculumError
from coursemarket.enrollments.service import EnrollmentError

from .dependencies import ProgressServiceDep, handle_progress_error
from .schemas import (
    CourseProgressResponse,
    ProgressResponse,
    RecordProgressRequest,
    RecordProgressResponse,
    UserProgressResponse,
)
from .service import ProgressError


router = APIRouter(prefix="/progress", tags=["progress"])


@router.post("", response_model=RecordProgressResponse)
async def record_lesson_progress(
    data: RecordProgressRequest,
    progress_service: ProgressServiceDep,
) -> RecordProgressResponse:
    """Record a lesson watch event.

    Called periodically while a video plays and once when it ends.
    """
    set_user_context(data.user_id)
    try:
        result = await progress_service.record_lesson_progress(
            user_id=data.user_id,
            course_id=data.course_id,
            lesson_id=data.lesson_id,
            watched_seconds=data.progress,
            completed=data.completed,
        )
    except (ProgressError, CurriculumError, EnrollmentError) as e:
        raise handle_progress_error(e) from e

    return RecordProgressResponse(
        progress=[ProgressResponse.from_entity(p) for p in result.progress],
        course_progress=CourseProgressResponse.from_aggregate(result.course_progress),
        is_course_completed=result.is_course_completed,
    )


@router.get("/{user_id}/{course_id}", response_model=UserProgressResponse)
async def get_user_progress(
    user_id: UUID,
    course_id: UUID,
    progress_service: ProgressServiceDep,
) -> UserProgressResponse:
    """Get a user's progress in a course."""
    set_user_context(user_id)
    try:
        result = await progress_service.get_user_progress(user_id, course_id)
    except (CurriculumError, EnrollmentError) as e:
        raise handle_progress_error(e) from e

    return UserProgressResponse(
        progress=[ProgressResponse.from_entity(p) for p in result.progress],
        course_progress=CourseProgressResponse.from_aggregate(result.course_progress),
    )
