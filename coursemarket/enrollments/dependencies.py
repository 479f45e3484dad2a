"""FastAPI dependencies for enrollments.

Provides dependency injection for:
- Enrollment service
- Error handlers
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from coursemarket.core.errors import to_http_exception

from .service import EnrollmentError, EnrollmentService


async def get_enrollment_service(request: Request) -> EnrollmentService:
    """Get enrollment service from app state.

    Args:
        request: FastAPI request

    Returns:
        EnrollmentService instance
    """
    service = getattr(request.app.state, "enrollment_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Enrollment service not available",
        )
    return service


EnrollmentServiceDep = Annotated[EnrollmentService, Depends(get_enrollment_service)]


ENROLLMENT_ERROR_STATUS = {
    "not_enrolled": status.HTTP_403_FORBIDDEN,
    "already_enrolled": status.HTTP_409_CONFLICT,
    "enrollment_not_found": status.HTTP_404_NOT_FOUND,
}


def handle_enrollment_error(error: EnrollmentError) -> HTTPException:
    """Convert enrollment errors to HTTP exceptions."""
    return to_http_exception(error, ENROLLMENT_ERROR_STATUS)
