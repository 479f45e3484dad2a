"""Certificate API endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from coursemarket.core.middleware import set_user_context
from coursemarket.enrollments.service import EnrollmentError

from .dependencies import CertificateServiceDep, handle_certificate_error
from .schemas import CertificateResponse, IssueCertificateRequest
from .service import CertificateError


router = APIRouter(prefix="/certificates", tags=["certificates"])


@router.post(
    "",
    response_model=CertificateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def issue_certificate(
    data: IssueCertificateRequest,
    certificate_service: CertificateServiceDep,
) -> CertificateResponse:
    """Issue the certificate of a completed course."""
    set_user_context(data.user_id)
    try:
        certificate = await certificate_service.issue(data.user_id, data.course_id)
    except (CertificateError, EnrollmentError) as e:
        raise handle_certificate_error(e) from e
    return CertificateResponse.from_entity(certificate)


@router.get("/{user_id}/{course_id}", response_model=CertificateResponse)
async def get_certificate(
    user_id: UUID,
    course_id: UUID,
    certificate_service: CertificateServiceDep,
) -> CertificateResponse:
    """Get an issued certificate."""
    set_user_context(user_id)
    try:
        certificate = await certificate_service.get(user_id, course_id)
    except CertificateError as e:
        raise handle_certificate_error(e) from e
    return CertificateResponse.from_entity(certificate)
