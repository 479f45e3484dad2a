"""FastAPI dependencies for curriculum reads."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from coursemarket.core.errors import to_http_exception

from .service import CurriculumError, CurriculumService


async def get_curriculum_service(request: Request) -> CurriculumService:
    """Get curriculum service from app state."""
    service = getattr(request.app.state, "curriculum_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Curriculum service not available",
        )
    return service


CurriculumServiceDep = Annotated[CurriculumService, Depends(get_curriculum_service)]


CURRICULUM_ERROR_STATUS = {
    "course_not_found": status.HTTP_404_NOT_FOUND,
    "invalid_curriculum": status.HTTP_404_NOT_FOUND,
}


def handle_curriculum_error(error: CurriculumError) -> HTTPException:
    """Convert curriculum errors to HTTP exceptions."""
    return to_http_exception(error, CURRICULUM_ERROR_STATUS)
