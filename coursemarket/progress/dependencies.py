"""FastAPI dependencies for progress tracking.

Provides dependency injection for:
- Progress service
- Error handlers
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from coursemarket.core.errors import to_http_exception
from coursemarket.curriculum.service import CurriculumError
from coursemarket.enrollments.service import EnrollmentError

from .service import ProgressError, ProgressService


async def get_progress_service(request: Request) -> ProgressService:
    """Get progress service from app state.

    Args:
        request: FastAPI request

    Returns:
        ProgressService instance
    """
    service = getattr(request.app.state, "progress_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progress service not available",
        )
    return service


# Type alias for dependency injection
ProgressServiceDep = Annotated[ProgressService, Depends(get_progress_service)]


PROGRESS_ERROR_STATUS = {
    "course_not_found": status.HTTP_404_NOT_FOUND,
    "invalid_curriculum": status.HTTP_404_NOT_FOUND,
    "lesson_not_in_course": status.HTTP_404_NOT_FOUND,
    "not_enrolled": status.HTTP_403_FORBIDDEN,
}


def handle_progress_error(
    error: ProgressError | CurriculumError | EnrollmentError,
) -> HTTPException:
    """Convert progress-path errors to HTTP exceptions."""
    return to_http_exception(error, PROGRESS_ERROR_STATUS)
