"""FastAPI dependencies for certificates."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from coursemarket.core.errors import to_http_exception
from coursemarket.enrollments.service import EnrollmentError

from .service import CertificateError, CertificateService


async def get_certificate_service(request: Request) -> CertificateService:
    """Get certificate service from app state."""
    service = getattr(request.app.state, "certificate_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Certificate service not available",
        )
    return service


CertificateServiceDep = Annotated[CertificateService, Depends(get_certificate_service)]


CERTIFICATE_ERROR_STATUS = {
    "not_enrolled": status.HTTP_403_FORBIDDEN,
    "course_not_completed": status.HTTP_403_FORBIDDEN,
    "certificate_not_found": status.HTTP_404_NOT_FOUND,
}


def handle_certificate_error(
    error: CertificateError | EnrollmentError,
) -> HTTPException:
    """Convert certificate errors to HTTP exceptions."""
    return to_http_exception(error, CERTIFICATE_ERROR_STATUS)
